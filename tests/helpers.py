"""In-memory stand-ins for targets and the profile store."""

from datetime import datetime
from typing import Callable, Dict, List, Optional

from core.errors import ProfileNotFound, TargetReadError, TargetWriteError
from core.targets import TargetAdapter
from models.profile import Profile
from models.switch import TargetName, TargetValues


class FakeTarget(TargetAdapter):
    """Target backed by an attribute; records every write attempt in a shared journal."""

    def __init__(
        self,
        name: TargetName,
        progress_label: str,
        token: Optional[str] = None,
        base_url: Optional[str] = None,
        journal: Optional[list] = None,
        read_error: Optional[str] = None,
        write_error: Optional[str] = None,
        on_write: Optional[Callable[["FakeTarget"], None]] = None
    ):
        self.name = name
        self.progress_label = progress_label
        self.values = TargetValues(token=token, base_url=base_url)
        self.journal = journal if journal is not None else []
        self.read_error = read_error
        self.write_error = write_error
        self.on_write = on_write

    def read(self) -> TargetValues:
        if self.read_error:
            raise TargetReadError(self.name.value, self.read_error)
        return self.values

    def write(self, token, base_url) -> None:
        self.journal.append((self.name, token, base_url))
        if self.on_write:
            self.on_write(self)
        if self.write_error:
            raise TargetWriteError(self.name.value, self.write_error)
        self.values = TargetValues(token=token, base_url=base_url)


class FakeEnvironment:
    """Dict-backed environment backend for EnvironmentTarget."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.vars: Dict[str, str] = dict(initial or {})
        self.broadcasts = 0

    def get(self, name):
        return self.vars.get(name)

    def set(self, name, value):
        self.vars[name] = value

    def delete(self, name):
        self.vars.pop(name, None)

    def broadcast_change(self):
        self.broadcasts += 1


class FakeProfileStore:
    """Profile store holding profiles in memory."""

    def __init__(self, profiles: List[Profile]):
        self.profiles = {p.id: p for p in profiles}
        self.set_active_calls: List[Optional[str]] = []

    def get_profile(self, profile_id: str) -> Profile:
        if profile_id not in self.profiles:
            raise ProfileNotFound(profile_id)
        return self.profiles[profile_id]

    def set_active(self, profile_id):
        self.set_active_calls.append(profile_id)
        for pid, profile in self.profiles.items():
            profile.is_active = pid == profile_id
        return True, None


def make_profile(profile_id="prod", name="Prod", token="sk-new", base_url="https://api.new") -> Profile:
    now = datetime(2024, 1, 1, 12, 0, 0)
    return Profile(id=profile_id, name=name, token=token, base_url=base_url, created=now, modified=now)


OLD_TOKEN = "sk-old"
OLD_URL = "https://api.old"
