"""
------------------------------------------------------------------------------
Project:        DeweyFlux
File:           core/models/record.py
Version:        1.0.0
Producer:       thorsten.schnebeck@gmx.net
Generator:      Antigravity
Description:    Pydantic models for classified documents. Covers the raw AI
                response, the DDC classification with its hierarchical path,
                the ontological report and the immutable library record.
------------------------------------------------------------------------------
"""

from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

JSON_LD_CONTEXT: Dict[str, str] = {
    "schema": "http://schema.org/",
    "dc": "http://purl.org/dc/terms/",
    "dewey": "http://purl.org/NET/decimalised#",
    "myo": "https://zakdegarmo.github.io/MyOntology/docs/",
}


def _as_text(v: Any) -> str:
    """AI backends occasionally answer class numbers as integers."""
    if v is None:
        return ""
    return str(v).strip()


class DdcInfo(BaseModel):
    """One (number, name) step of a classification path."""
    model_config = ConfigDict(frozen=True, extra="ignore")

    number: str = ""
    name: str = ""

    @field_validator("number", "name", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> str:
        return _as_text(v)


class DdcClassification(BaseModel):
    """Dewey Decimal classification of a document, general to specific."""
    model_config = ConfigDict(frozen=True, extra="ignore")

    number: str = ""
    name: str = ""
    path: Tuple[DdcInfo, ...] = ()

    @field_validator("number", "name", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> str:
        return _as_text(v)

    @field_validator("path", mode="before")
    @classmethod
    def drop_null_steps(cls, v: Any) -> Any:
        if v is None:
            return ()
        if isinstance(v, list):
            return [step for step in v if step is not None]
        return v


class OntologyReport(BaseModel):
    """
    Interpretive report over ten core concepts plus a SKOS label/definition.
    Field aliases match the keys requested from the AI backend.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    pref_label: str = Field("", alias="skos:prefLabel")
    definition: str = Field("", alias="skos:definition")
    self_view: str = Field("", alias="Self")
    thought: str = Field("", alias="Thought")
    logic: str = Field("", alias="Logic")
    unity: str = Field("", alias="Unity")
    existence: str = Field("", alias="Existence")
    improvement: str = Field("", alias="Improvement")
    mastery: str = Field("", alias="Mastery")
    resonance: str = Field("", alias="Resonance")
    transcendence: str = Field("", alias="Transcendence")
    everything: str = Field("", alias="Everything")

    @field_validator("*", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> str:
        return _as_text(v)

    def sections(self) -> List[Tuple[str, str]]:
        """Returns (heading, text) pairs in report order, 'skos:' prefix stripped."""
        data = self.model_dump(by_alias=True)
        return [(key.replace("skos:", ""), value) for key, value in data.items()]


class ClassificationResponse(BaseModel):
    """
    Structured answer of the classification service.
    Validation failures here are reported as missing fields.
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title: str = Field(..., min_length=1)
    summary: str = Field(..., min_length=1)
    keywords: List[str]
    ddc: DdcClassification
    ontology_report: OntologyReport = Field(..., alias="ontologyReport")

    @model_validator(mode="before")
    @classmethod
    def repair_common_mistakes(cls, data: Any) -> Any:
        """
        Repairs frequent AI deviations before validation:
        1. Keywords delivered as a single comma-separated string.
        2. Report delivered under a snake_case key.
        """
        if not isinstance(data, dict):
            return data
        data = dict(data)

        kw = data.get("keywords")
        if isinstance(kw, str):
            data["keywords"] = [k.strip() for k in kw.split(",") if k.strip()]

        if "ontologyReport" not in data and "ontology_report" in data:
            data["ontologyReport"] = data.pop("ontology_report")

        return data

    @field_validator("title", "summary", mode="before")
    @classmethod
    def strip_text(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("keywords")
    @classmethod
    def clean_keywords(cls, v: List[str]) -> List[str]:
        return [k.strip() for k in v if k and k.strip()]

    @field_validator("ddc")
    @classmethod
    def require_number(cls, v: DdcClassification) -> DdcClassification:
        # Stored records may carry an empty code, a fresh answer may not
        if not v.number:
            raise ValueError("classification number is empty")
        return v


class ClassificationRecord(BaseModel):
    """
    Immutable library entry for one processed document.
    Serialized with the camelCase keys of the library interchange format.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str
    call_number: str = Field("", alias="callNumber")
    title: str = ""
    summary: str = ""
    keywords: Tuple[str, ...] = ()
    ddc: DdcClassification
    ontology_report: OntologyReport = Field(default_factory=OntologyReport, alias="ontologyReport")
    source_text: str = Field("", alias="originalText")
    file_name: Optional[str] = Field(None, alias="fileName")
    created_at: Optional[str] = Field(None, alias="createdAt")

    @model_validator(mode="before")
    @classmethod
    def fill_legacy_fields(cls, data: Any) -> Any:
        """Older exports carry the text as 'fileContent' and may lack a call number."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if not data.get("originalText") and not data.get("source_text") and data.get("fileContent"):
            data["originalText"] = data["fileContent"]
        if not data.get("callNumber") and not data.get("call_number") and data.get("id"):
            data["callNumber"] = data["id"]
        return data

    @property
    def code(self) -> str:
        return self.ddc.number

    @property
    def path(self) -> Tuple[DdcInfo, ...]:
        return self.ddc.path

    @classmethod
    def from_response(
        cls,
        response: ClassificationResponse,
        call_number: str,
        source_text: str,
        file_name: Optional[str] = None,
        created_at: Optional[str] = None,
    ) -> "ClassificationRecord":
        """Builds a library record from a validated service response."""
        return cls(
            id=call_number,
            call_number=call_number,
            title=response.title,
            summary=response.summary,
            keywords=tuple(response.keywords),
            ddc=response.ddc,
            ontology_report=response.ontology_report,
            source_text=source_text,
            file_name=file_name,
            created_at=created_at,
        )

    def to_json_ld(self) -> Dict[str, Any]:
        """Linked-data description of this record (schema.org / Dublin Core / DDC)."""
        excerpt = self.source_text[:500] + "..." if self.source_text else ""
        return {
            "@context": dict(JSON_LD_CONTEXT),
            "@type": "schema:Book",
            "@id": f"urn:library:book:{self.call_number or self.id}",
            "dc:title": self.title,
            "dc:description": self.summary,
            "schema:text": excerpt,
            "schema:keywords": ", ".join(self.keywords),
            "dewey:class": self.ddc.number,
            "dewey:hasClassification": [
                {"@type": "dewey:Class", "dewey:notation": p.number, "dc:title": p.name}
                for p in self.ddc.path
            ],
            "myo:report": self.ontology_report.model_dump(by_alias=True),
        }
