"""
Extraction Models - Data types for extraction domain.

ExtractionSchema is the contract model output must satisfy; the model is an
untrusted producer, so every response goes through validate_extraction().
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, StrictStr, ValidationError

from billsnap.config.errors import ErrorCode, MalformedOutputError

BILL_NO_SENTINEL = "N/A"
AMOUNT_SENTINEL = "0"
DEFAULT_MIME_TYPE = "image/jpeg"


class Purpose(str, Enum):
    """Expense category. Exactly one per receipt."""

    CONVEYANCE = "Conveyance"
    TRAIN = "Train"
    BUS = "Bus"
    FOOD = "Food"
    HOTEL = "Hotel"
    PROJECT_EXPENSE = "Project Expense"
    OTHER = "Other"


class ExtractionSchema(BaseModel):
    """Structured fields extracted from one receipt/bill image."""

    bill_no: StrictStr = Field(
        min_length=1,
        description=f'Invoice/receipt/bill/order/transaction identifier, "{BILL_NO_SENTINEL}" if none',
    )
    amount: StrictStr = Field(
        min_length=1,
        description=f'Final total with currency symbol if shown, "{AMOUNT_SENTINEL}" if none',
    )
    purpose: Purpose = Field(description="Single best-fit expense category")
    raw_text: StrictStr = Field(description="Full transcription of all visible text")

    model_config = ConfigDict(frozen=True, extra="ignore")


# Schema handed to Gemini as response_schema. Mirrors ExtractionSchema.
RESPONSE_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "bill_no": {
            "type": "string",
            "description": ExtractionSchema.model_fields["bill_no"].description,
        },
        "amount": {
            "type": "string",
            "description": ExtractionSchema.model_fields["amount"].description,
        },
        "purpose": {
            "type": "string",
            "format": "enum",
            "enum": [p.value for p in Purpose],
            "description": ExtractionSchema.model_fields["purpose"].description,
        },
        "raw_text": {
            "type": "string",
            "description": ExtractionSchema.model_fields["raw_text"].description,
        },
    },
    "required": ["bill_no", "amount", "purpose", "raw_text"],
}


def validate_extraction(candidate: Any) -> ExtractionSchema:
    """
    Check a candidate model output against ExtractionSchema.

    Nothing is coerced or defaulted: missing fields, non-string values, empty
    bill_no/amount and purpose values outside the enum are all rejected.

    Args:
        candidate: Decoded model output

    Returns:
        Validated ExtractionSchema

    Raises:
        MalformedOutputError: Candidate does not satisfy the schema
    """
    if isinstance(candidate, ExtractionSchema):
        return candidate
    if not isinstance(candidate, dict):
        raise MalformedOutputError(
            "Model output is not a JSON object",
            {"received_type": type(candidate).__name__},
        )
    try:
        return ExtractionSchema.model_validate(candidate)
    except ValidationError as e:
        raise MalformedOutputError(
            "Model output failed schema validation",
            {
                "errors": [
                    {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
                    for err in e.errors()
                ]
            },
        ) from e


class ExtractionRequest(BaseModel):
    """Wire request body for POST /extract."""

    image: str | None = None
    mime_type: str | None = Field(default=None, alias="mimeType")

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class Remediation(BaseModel):
    """Steps that let the user provision a missing credential."""

    instructions: str
    steps: list[str] = Field(default_factory=list)
    links: list[str] = Field(default_factory=list)


class ExtractionSuccess(BaseModel):
    """Validated extraction."""

    kind: Literal["success"] = "success"
    data: ExtractionSchema

    @property
    def ok(self) -> bool:
        return True


class ExtractionFailure(BaseModel):
    """Classified failure. Only AUTH_MISSING carries remediation."""

    kind: Literal["failure"] = "failure"
    category: ErrorCode
    message: str
    details: str | None = None
    suggestion: str | None = None
    remediation: Remediation | None = None

    @property
    def ok(self) -> bool:
        return False


ExtractionResult = Annotated[
    Union[ExtractionSuccess, ExtractionFailure],
    Field(discriminator="kind"),
]
