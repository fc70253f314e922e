from dataclasses import asdict, dataclass
from typing import Dict, List

SUCCESS = "success"
ERROR = "error"


@dataclass(frozen=True)
class Notification:
    """A transient message for the user, rendered once and then dropped."""

    level: str
    message: str


class Notifier:
    def __init__(self):
        self.notifications: List[Notification] = []

    def success(self, message: str) -> None:
        self.notifications.append(Notification(SUCCESS, message))

    def error(self, message: str) -> None:
        self.notifications.append(Notification(ERROR, message))

    def messages(self) -> List[str]:
        return [notification.message for notification in self.notifications]

    def as_data(self) -> List[Dict[str, str]]:
        return [asdict(notification) for notification in self.notifications]
