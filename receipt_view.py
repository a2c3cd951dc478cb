"""Turn an AdvisoryRecord into what the receipt templates print."""

from dataclasses import dataclass
from typing import Optional

from flask import render_template

from advisory import AdvisoryRecord, TreatmentComponent
from print_trigger import PrintTrigger


@dataclass(frozen=True)
class LayoutPolicy:
    name: str
    template: str
    width_mm: int
    height_mm: Optional[int]
    id_chars: Optional[int]
    join_lines: bool

    @property
    def page_size(self) -> str:
        if self.height_mm is None:
            return f"{self.width_mm}mm auto"
        return f"{self.width_mm}mm {self.height_mm}mm"


# fixed 80x120 label: comma-joined text, compact table, clipped overflow
LABEL = LayoutPolicy(
    name="label",
    template="receipt_label.html",
    width_mm=80,
    height_mm=120,
    id_chars=6,
    join_lines=True,
)

# 80mm roll paper, grows with content
ROLL = LayoutPolicy(
    name="roll",
    template="receipt_roll.html",
    width_mm=80,
    height_mm=None,
    id_chars=None,
    join_lines=False,
)

LAYOUTS = {policy.name: policy for policy in (LABEL, ROLL)}


def get_layout(name: str) -> LayoutPolicy:
    return LAYOUTS[(name or "").strip().lower()]


@dataclass(frozen=True)
class TreatmentRow:
    component_type: str
    name: str
    dose: str
    method: str
    note: str


@dataclass(frozen=True)
class ReceiptView:
    layout: LayoutPolicy
    title: str
    category: str
    stage: str
    display_id: str
    rendered_at: str
    symptoms: object
    notes: object
    treatments: tuple

    @property
    def has_symptoms(self) -> bool:
        return bool(self.symptoms)

    @property
    def has_notes(self) -> bool:
        return bool(self.notes)

    @property
    def has_treatments(self) -> bool:
        return bool(self.treatments)


def _text(value) -> str:
    if value is None or isinstance(value, bool):
        return ""
    return str(value)


def _lines(text: str) -> list:
    return [line.strip() for line in text.split("\n") if line.strip()]


def _row(component: TreatmentComponent) -> TreatmentRow:
    return TreatmentRow(
        component_type=_text(component.component_type),
        name=_text(component.component_name_te),
        dose=_text(component.dose_te),
        method=_text(component.application_method_te),
        note=_text(component.notes_te),
    )


def build_receipt(record: AdvisoryRecord, layout: LayoutPolicy) -> ReceiptView:
    if layout.join_lines:
        symptoms = record.symptoms_te.replace("\n", ", ")
        notes = record.notes_te.replace("\n", ", ")
    else:
        symptoms = _lines(record.symptoms_te)
        notes = _lines(record.notes_te)

    display_id = record.receipt_id
    if layout.id_chars:
        display_id = display_id[-layout.id_chars:]

    return ReceiptView(
        layout=layout,
        title=record.display_name,
        category=record.category or "-",
        stage=record.stage or "-",
        display_id=display_id,
        rendered_at=record.rendered_at,
        symptoms=symptoms,
        notes=notes,
        treatments=tuple(_row(c) for c in record.components),
    )


def render_receipt(view: ReceiptView, trigger: PrintTrigger, brand: dict) -> str:
    """Render the print-ready page. Needs a Flask application context."""
    return render_template(
        view.layout.template,
        view=view,
        print_script=trigger.script(),
        brand=brand,
    )
