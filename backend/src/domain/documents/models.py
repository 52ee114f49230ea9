"""Document domain models: properties, associations and entitlement.

DocumentProperties is a pydantic model because it doubles as the shape
schema for incoming property payloads. Associations and entitlement are
frozen dataclasses built by the validator after their own shape pass.
"""

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictFloat,
    StrictInt,
    StrictStr,
    field_validator,
)


class EntitlementMode(str, Enum):
    """Sharing mode of a document"""
    PRIVATE = "private"  # Owner and explicitly entitled orgs only
    LINKED = "linked"    # Also orgs related to the linked traceable element


class TraceableCategory(str, Enum):
    """Traceable-element categories a document can be linked to"""
    LOCATION = "location"
    PRODUCT = "product"
    ORGANIZATION = "organization"
    EPC = "epc"

    @property
    def field_name(self) -> str:
        """Association list field holding elements of this category"""
        return TRACEABLE_FIELDS[self]


TRACEABLE_FIELDS: dict[TraceableCategory, str] = {
    TraceableCategory.LOCATION: "locationGLNList",
    TraceableCategory.PRODUCT: "productList",
    TraceableCategory.ORGANIZATION: "organizationList",
    TraceableCategory.EPC: "epcList",
}

EVENT_FIELD = "eventIDList"
TRANSACTION_FIELD = "transactionIDList"

ASSOCIATION_FIELDS: tuple[str, ...] = (*TRACEABLE_FIELDS.values(), EVENT_FIELD, TRANSACTION_FIELD)


class CustomPropertyFormat(str, Enum):
    """Recognized value formats for custom properties"""
    DATE = "date"
    DATE_TIME = "date-time"
    GLN = "gln"
    GTIN = "gtin"
    URI = "uri"


def _parse_iso_date(value: str) -> str:
    try:
        date.fromisoformat(value)
    except ValueError:
        try:
            datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            raise ValueError(f"'{value}' is not an ISO 8601 date")
    return value


class CustomProperty(BaseModel):
    """User-defined name/value pair attached to a document"""
    model_config = ConfigDict(frozen=True)

    name: StrictStr
    value: Union[StrictStr, StrictInt, StrictFloat]
    format: Optional[CustomPropertyFormat] = None


class DocumentProperties(BaseModel):
    """User-supplied document metadata.

    Template-specific keys (issuer, validFrom, certificateNumber, ...) are
    not declared here; they are kept verbatim as extra fields.
    """
    model_config = ConfigDict(
        extra="allow",
        frozen=True,
        populate_by_name=True,
    )

    document_type: StrictStr = Field(alias="documentType")
    document_title: StrictStr = Field(alias="documentTitle")
    issue_date: Optional[StrictStr] = Field(default=None, alias="issueDate")
    expiry_date: Optional[StrictStr] = Field(default=None, alias="expiryDate")
    tag_list: list[StrictStr] = Field(default_factory=list, alias="tagList")
    custom_properties: list[CustomProperty] = Field(default_factory=list, alias="customProperties")

    # Association lists, accepted here for convenience at creation time
    location_gln_list: list[StrictStr] = Field(default_factory=list, alias="locationGLNList")
    product_list: list[StrictStr] = Field(default_factory=list, alias="productList")
    organization_list: list[StrictStr] = Field(default_factory=list, alias="organizationList")
    epc_list: list[StrictStr] = Field(default_factory=list, alias="epcList")
    event_id_list: list[StrictStr] = Field(default_factory=list, alias="eventIDList")
    transaction_id_list: list[StrictStr] = Field(default_factory=list, alias="transactionIDList")

    @field_validator("issue_date", "expiry_date")
    @classmethod
    def validate_iso_date(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        return _parse_iso_date(value)

    def association_lists(self) -> dict[str, list[str]]:
        """The six association list fields keyed by their wire names"""
        dumped = self.model_dump(by_alias=True, include={
            "location_gln_list",
            "product_list",
            "organization_list",
            "epc_list",
            "event_id_list",
            "transaction_id_list",
        })
        return {name: dumped[name] for name in ASSOCIATION_FIELDS}

    def to_dict(self) -> dict[str, Any]:
        """Wire representation (camelCase, unset optionals omitted)"""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


@dataclass(frozen=True)
class TraceableLink:
    """The single traceable-element category a document is linked to"""
    category: TraceableCategory
    elements: tuple[str, ...]


@dataclass(frozen=True)
class DocumentAssociations:
    """Links from a document to traceable elements, events and transactions.

    At most one traceable-element category can be linked, which is why it is
    held as one optional TraceableLink rather than four parallel lists.
    Event and transaction references are loose links and never grant access.
    """
    traceable_link: Optional[TraceableLink] = None
    event_ids: tuple[str, ...] = ()
    transaction_ids: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, list[str]]:
        """Convert to the six-list wire/storage representation"""
        data: dict[str, list[str]] = {name: [] for name in ASSOCIATION_FIELDS}
        if self.traceable_link is not None:
            data[self.traceable_link.category.field_name] = list(self.traceable_link.elements)
        data[EVENT_FIELD] = list(self.event_ids)
        data[TRANSACTION_FIELD] = list(self.transaction_ids)
        return data

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> "DocumentAssociations":
        """Rebuild from stored lists that were validated on the way in.

        Raises:
            ValueError: If more than one traceable-element list is populated
        """
        data = data or {}
        links = [
            TraceableLink(category, tuple(data[field_name]))
            for category, field_name in TRACEABLE_FIELDS.items()
            if data.get(field_name)
        ]
        if len(links) > 1:
            raise ValueError("Stored associations link more than one traceable element category")
        return cls(
            traceable_link=links[0] if links else None,
            event_ids=tuple(data.get(EVENT_FIELD) or ()),
            transaction_ids=tuple(data.get(TRANSACTION_FIELD) or ()),
        )


@dataclass(frozen=True)
class DocumentEntitlement:
    """Access-control record of a document.

    entitled_org_ids grants access in both modes.
    """
    mode: EntitlementMode = EntitlementMode.PRIVATE
    entitled_org_ids: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"mode": self.mode.value}
        if self.entitled_org_ids:
            data["entitledOrgIds"] = list(self.entitled_org_ids)
        return data

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> "DocumentEntitlement":
        if not data:
            return cls()
        return cls(
            mode=EntitlementMode(data.get("mode", EntitlementMode.PRIVATE.value)),
            entitled_org_ids=tuple(data.get("entitledOrgIds") or ()),
        )
