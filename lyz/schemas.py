"""Structured records for the plan payloads, one per wizard stage.

Every record accepts extra keys; the plan stores the payload exactly as
submitted once it validates.
"""
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, PositiveFloat, PositiveInt, ValidationError

PROFESSIONAL_TYPES = ("medical_nutritionist", "other_professional")


class Record(BaseModel):
    model_config = ConfigDict(extra="allow")


class PatientData(Record):
    name: str = Field(min_length=1)
    age: Optional[PositiveInt] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    height: Optional[PositiveFloat] = None
    weight: Optional[PositiveFloat] = None
    menarche_age: Optional[PositiveInt] = None
    cycle_length: Optional[PositiveInt] = None
    period_length: Optional[PositiveInt] = None
    is_menopausal: Optional[bool] = None
    main_complaints: Optional[str] = None
    treatment_goals: Optional[str] = None


class QuestionnaireData(Record):
    pass


class LabResults(Record):
    fileUrl: str
    fileName: str
    extractedText: Optional[str] = None
    analysis: Optional[str] = None


class Tongue(Record):
    color: Optional[str] = None
    coating: Optional[str] = None
    shape: Optional[str] = None
    moisture: Optional[str] = None
    notes: Optional[str] = None


class Pulse(Record):
    rate: Optional[str] = None
    strength: Optional[str] = None
    rhythm: Optional[str] = None
    notes: Optional[str] = None


class TcmObservations(Record):
    face: Optional[Dict] = None
    tongue: Optional[Tongue] = None
    pulse: Optional[Pulse] = None


class TimelineEvent(Record):
    age: Optional[float] = Field(default=None, ge=0)
    event: str
    type: Literal["health", "life", "other"] = "other"
    description: Optional[str] = None


class TimelineData(Record):
    events: List[TimelineEvent] = []
    developmental_factors: Optional[str] = None
    environmental_factors: Optional[str] = None
    nutritional_factors: Optional[str] = None
    psychosocial_factors: Optional[str] = None
    additional_notes: Optional[str] = None


class MatrixItem(Record):
    name: str
    value: int = Field(default=0, ge=0, le=3)
    notes: Optional[str] = None


class MatrixCategory(Record):
    name: Optional[str] = None
    items: List[MatrixItem] = []
    notes: Optional[str] = None


class IfmMatrix(Record):
    assimilation: Optional[MatrixCategory] = None
    defense_repair: Optional[MatrixCategory] = None
    energy: Optional[MatrixCategory] = None
    biotransformation_elimination: Optional[MatrixCategory] = None
    transport: Optional[MatrixCategory] = None
    communication: Optional[MatrixCategory] = None
    structural_integrity: Optional[MatrixCategory] = None
    notes: Optional[str] = None


class FinalPlan(Record):
    patientData: Optional[Dict] = None
    generalPlan: Optional[Dict[str, Optional[str]]] = None
    cyclicalPlan: Optional[Dict[str, Optional[str]]] = None
    aiGeneratedContent: Optional[str] = None


class PayloadError(ValueError):
    """A stage payload failed validation; carries a client-facing error list"""

    def __init__(self, message, errors=None):
        super().__init__(message)
        self.errors = errors or []


def validate_payload(schema, payload, label):
    """Validate a JSON object against a stage record, returning it unchanged"""
    if not isinstance(payload, dict) or not payload:
        raise PayloadError(f"{label} must be a non-empty object")
    try:
        schema.model_validate(payload)
    except ValidationError as e:
        errors = [
            {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
            for err in e.errors()
        ]
        raise PayloadError(f"Invalid {label}", errors) from e
    return payload
