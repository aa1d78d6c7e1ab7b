"""Management command run daily by the scheduler."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.core.management.base import BaseCommand

from cercle.inits import DependencyInjector

if TYPE_CHECKING:
    from argparse import ArgumentParser

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    """Mark every published event dated before today as completed."""

    help = "Mark published events that took place before today as completed"

    def add_arguments(self, parser: ArgumentParser) -> None:  # noqa: PLR6301
        parser.add_argument(
            "--verbose-events",
            action="store_true",
            help="List the title of every event marked as completed",
        )

    def handle(self, *args: object, **options: object) -> None:  # noqa: ARG002
        report = DependencyInjector().functions.mark_completed_events()

        if options["verbose_events"]:
            for event in report.events:
                self.stdout.write(f"  {event.pk}: {event.title}")

        self.stdout.write(self.style.SUCCESS(report.message))
