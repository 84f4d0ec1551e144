# aidetect/core/context.py
from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class RequestContext:
    """
    State that lives for exactly one host request.

    notification_displayed makes sure the account notice is checked and
    shown at most once, no matter how many results are rendered on a page.
    """

    viewer_id: Optional[int] = None
    course_id: Optional[int] = None
    notification_displayed: bool = False
    notices: List[str] = field(default_factory=list)

    def add_notice(self, message: str) -> None:
        self.notices.append(message)
