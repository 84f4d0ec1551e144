# aidetect/services/result_presenter.py
from __future__ import annotations

import logging
from decimal import Decimal, ROUND_HALF_UP
from html import escape

from sqlalchemy.orm import Session

from aidetect.core.config import settings
from aidetect.core.context import RequestContext
from aidetect.models.detection_file import DetectionFile
from aidetect.schemas.result import DisplayFragment
from aidetect.services import module_settings_service, record_store
from aidetect.services.account_notice import AccountNotice

logger = logging.getLogger(__name__)

CLASS_LABELS = {
    "ai": "AI",
    "human": "Human",
    "mixed": "Mixed",
}
DEFAULT_LABEL = "Unknown"

BACKGROUND_COLORS = {
    "ai": "#FEBD69",
    "human": "#8AD4BA",
    "mixed": "#E9D2FF",
}
HOVER_COLORS = {
    "ai": "#E19F4A",
    "human": "#39B58A",
    "mixed": "#CDA3F5",
}
DEFAULT_BACKGROUND = "#FEBD69"
DEFAULT_HOVER = "#E19F4A"

PENDING_TEXT = "Pending"


def class_label(predicted_class: str | None) -> str:
    return CLASS_LABELS.get(predicted_class or "", DEFAULT_LABEL)


def format_percentage(probability) -> int:
    """0.873 -> 87, halves round up."""
    value = Decimal(str(probability)) * 100
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _badge_style(background: str) -> str:
    return (
        "display: flex; width: 110px; height: 25px; padding: 1px; "
        "justify-content: center; align-items: center; "
        f"background: {background}; border-radius: 5px; "
        "box-shadow: 0 2px 4px rgba(0,0,0,0.1); cursor: pointer; "
        "transition: background-color 0.3s, box-shadow 0.3s; "
        "font-family: Inter, sans-serif; font-size: 13px; font-weight: 700; "
        "text-align: center; color: #000;"
    )


class ResultPresenter:
    """
    Renders the stored verdict for one submission as a small HTML fragment.

    Nothing is shown when detection is off for the module, nothing was
    stored, or the viewer may not see reports (unless the module lets
    students see their own results). A stored record without a verdict
    renders as "Pending".
    """

    def __init__(self, db: Session, account_notice: AccountNotice | None = None) -> None:
        self.db = db
        self.account_notice = account_notice

    def render(
        self,
        cm_id: int,
        user_id: int,
        identifier: str,
        viewer_can_see_report: bool,
        context: RequestContext | None = None,
    ) -> DisplayFragment:
        if not module_settings_service.plugin_enabled():
            return DisplayFragment()
        if not module_settings_service.is_detection_used(self.db, cm_id):
            return DisplayFragment()

        if context is not None and self.account_notice is not None:
            self.account_notice.handle_grading_page_view(context)

        record = record_store.find_record(
            self.db, cm_id=cm_id, user_id=user_id, identifier=identifier
        )
        if record is None:
            return DisplayFragment()

        config = record_store.get_module_config(self.db, cm_id)
        if config is not None and config.show_student_results:
            viewer_can_see_report = True
        if not viewer_can_see_report:
            return DisplayFragment()

        if not record.is_analyzed:
            # TODO: resubmit records whose detection call failed (attempt counter)
            logger.debug(f"Record {record.id} not yet analyzed")
            return DisplayFragment(html=f"<br>{PENDING_TEXT}", status="pending")

        return self._render_analyzed(record)

    def _render_analyzed(self, record: DetectionFile) -> DisplayFragment:
        predicted_class = record.predicted_class
        label = class_label(predicted_class)
        percentage = (
            format_percentage(record.class_probability)
            if record.class_probability is not None
            else 0
        )
        text = f"{escape(label)} - {percentage}%"

        if record.scan_url:
            background = BACKGROUND_COLORS.get(predicted_class, DEFAULT_BACKGROUND)
            hover = HOVER_COLORS.get(predicted_class, DEFAULT_HOVER)
            fragment = (
                f"<br><a href='{escape(record.scan_url)}' target='_blank' rel='noopener' "
                "style='text-decoration: none; display: flex; align-items: center; "
                "gap: 10px; margin-top: 6px'>"
                f"<img src='{escape(settings.DETECTION_LOGO_URL)}' alt='AI detection logo' "
                "style='height: 20px;'>"
                f"<div style='{_badge_style(background)}' "
                f"onmouseover='this.style.backgroundColor=\"{hover}\";' "
                f"onmouseout='this.style.backgroundColor=\"{background}\";'>"
                f"{text}</div></a>"
            )
        else:
            fragment = f"<br>{escape(label)}: {percentage}%"

        return DisplayFragment(
            html=fragment,
            status="analyzed",
            label=label,
            percentage=percentage,
            scan_url=record.scan_url,
        )
