from dataclasses import dataclass, field

from cercle.adapters.db.django.models import Event, Profile, User
from cercle.pacts import AppRole


@dataclass
class Storage:
    events: dict[int, Event] = field(default_factory=dict)
    profiles: dict[int, Profile] = field(default_factory=dict)
    roles_by_user: dict[int, list[AppRole]] = field(default_factory=dict)
    users: dict[int, User] = field(default_factory=dict)
