"""
Structured clinical documents stored as JSON on patients and appointments.

Stored keys are camelCase (``dateOfBirth``, ``zipCode``) so rows written by the
booking site and rows written by this backend share one shape. Python code uses
snake_case attribute names; dump with ``by_alias=True`` before persisting.
"""

from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def to_store(self) -> Dict[str, Any]:
        """JSON-ready dict with camelCase keys and unset fields omitted."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class Address(_CamelModel):
    street: str = ""
    number: str = ""
    neighborhood: str = ""  # colonia
    municipality: Optional[str] = None
    city: str = ""
    state: str = ""
    zip_code: str = ""


class MedicalHistory(_CamelModel):
    """General data plus the clinical-history sections of a patient's record."""

    # General data
    sex: Optional[Literal["Masculino", "Femenino"]] = None
    date_of_birth: Optional[str] = None  # YYYY-MM-DD
    marital_status: Optional[Literal["Soltero", "Casado", "Divorciado", "Viudo", "Unión Libre"]] = None
    spouse_name: Optional[str] = None
    home_phone: Optional[str] = None
    office_phone: Optional[str] = None
    occupation: Optional[str] = None
    address: Optional[Address] = None
    insurance: Optional[bool] = None
    insurance_company: Optional[str] = None
    sports: Optional[str] = None
    recommended_by: Optional[str] = None
    blood_type: Optional[str] = None
    allergies: str = ""
    conditions: str = ""
    medications: str = ""
    surgeries: str = ""
    family_history: str = ""

    # Clinical history
    non_pathological_history: Optional[str] = None
    pathological_history: Optional[str] = None
    gyneco_obstetric_history: Optional[str] = None
    perinatal_history: Optional[str] = None
    current_condition: Optional[str] = None
    physical_exploration: Optional[str] = None
    lab_studies: Optional[str] = None
    treatment: Optional[str] = None
    prognosis: Optional[str] = None


class SoapNote(_CamelModel):
    """Per-visit clinical note."""
    subjective: str = ""  # symptoms as described by the patient
    objective: str = ""   # vitals, physical exploration
    analysis: str = ""    # diagnosis
    plan: str = ""        # treatment, studies
