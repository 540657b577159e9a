import re
import uuid

from chatimport.services.parsing.types import PLACEHOLDER_USER_NAME, User

PHONE_NAME_RE = re.compile(r"^\+?[\d\s().-]+$")


def phone_number_from_name(name: str) -> str | None:
    if not PHONE_NAME_RE.match(name):
        return None
    digits = re.sub(r"\D", "", name)
    if len(digits) < 7:
        return None
    return f"+{digits}" if name.startswith("+") else digits


class UserRegistry:
    """Maps display names to users for a single parse.

    Names are matched exactly after trimming; no case folding or fuzzy
    merging, so two spellings of one person stay two users.
    """

    def __init__(self) -> None:
        self._by_name: dict[str, User] = {}

    def resolve(self, display_name: str) -> str:
        name = display_name.strip() or PLACEHOLDER_USER_NAME
        user = self._by_name.get(name)
        if user is None:
            user = User(id=str(uuid.uuid4()), name=name, phone_number=phone_number_from_name(name))
            self._by_name[name] = user
        return user.id

    def users(self) -> list[User]:
        return list(self._by_name.values())

    def __len__(self) -> int:
        return len(self._by_name)
