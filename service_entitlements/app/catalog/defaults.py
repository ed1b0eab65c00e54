"""
Default product tables for the agent-office back office.

These are build-time constants. ``build_default_catalog`` assembles them
into the immutable objects the resolvers are constructed with.
"""

from dataclasses import dataclass
from typing import Dict, Mapping, Tuple

from .capabilities import CapabilityMap
from .models import (
    FeatureDefinition, FeatureGroup, NavSection, Plan, PlanInfo,
    StaffPermissionKey, StaffRole,
)
from .plans import PlanCatalog
from .registry import FeatureRegistry


DEFAULT_CATALOG_VERSION = "2026.1"

PLAN_INFO: Dict[Plan, PlanInfo] = {
    Plan.FREE: PlanInfo(Plan.FREE, "Free", 0),
    Plan.BASIC: PlanInfo(Plan.BASIC, "Basic", 29000),
    Plan.PRO: PlanInfo(Plan.PRO, "Pro", 79000),
    Plan.ENTERPRISE: PlanInfo(Plan.ENTERPRISE, "Enterprise", None),
}


def _feature(key, group, label, description, default_enabled=True, locked=False,
             requires_plan=None, premium=False, uses_ai=False) -> FeatureDefinition:
    return FeatureDefinition(
        key=key,
        group=group,
        label=label,
        description=description,
        default_enabled=default_enabled,
        locked=locked,
        requires_plan=requires_plan,
        premium=premium,
        uses_ai=uses_ai,
    )


_G = FeatureGroup

FEATURE_GROUPS = (
    (_G.CORE, "Core", (
        _feature("properties", _G.CORE, "Listings", "Register, edit and retire listings", locked=True),
        _feature("contracts", _G.CORE, "Contracts", "Contract drafting and disclosure statements", locked=True),
        _feature("crm", _G.CORE, "Customer CRM", "Customers, pipeline and activity history", locked=True),
        _feature("inquiries", _G.CORE, "Inquiries", "Receive and answer inquiries", locked=True),
        _feature("contract_tracker", _G.CORE, "Contract tracker", "Contract stages, deadlines and documents", locked=True),
        _feature("basic_valuation", _G.CORE, "Price lookup", "Market prices and trend charts", locked=True),
    )),
    (_G.AI, "AI tools", (
        _feature("ai_description", _G.AI, "AI listing copy", "Per-platform listing descriptions",
                 requires_plan=Plan.BASIC, uses_ai=True),
        _feature("ai_legal_review", _G.AI, "AI legal review", "Contract risk review",
                 requires_plan=Plan.BASIC, uses_ai=True),
        _feature("ai_customer_analysis", _G.AI, "AI customer insight", "Behaviour and conversion analysis",
                 requires_plan=Plan.BASIC, uses_ai=True),
        _feature("ai_chatbot", _G.AI, "AI chatbot", "Consultation chatbot on the public portal",
                 requires_plan=Plan.BASIC, uses_ai=True),
        _feature("ai_staging", _G.AI, "AI virtual staging", "Virtual interior on listing photos",
                 default_enabled=False, requires_plan=Plan.PRO, premium=True, uses_ai=True),
        _feature("ai_reply_draft", _G.AI, "AI reply drafts", "Draft answers to inquiries",
                 requires_plan=Plan.BASIC, uses_ai=True),
    )),
    (_G.MARKETING, "Marketing & analytics", (
        _feature("sns_posting", _G.MARKETING, "Social posting", "Promotional posts per platform",
                 default_enabled=False, requires_plan=Plan.PRO, premium=True),
        _feature("avm", _G.MARKETING, "AVM", "Automated valuation model",
                 requires_plan=Plan.BASIC),
        _feature("location_report", _G.MARKETING, "Location report", "Transit, schools and amenities",
                 requires_plan=Plan.BASIC),
        _feature("roi_calculator", _G.MARKETING, "ROI calculator", "ROI, cap rate and monthly cash flow",
                 requires_plan=Plan.BASIC),
        _feature("buy_sell_signal", _G.MARKETING, "Buy/sell signal", "Market-indicator based signal",
                 requires_plan=Plan.BASIC),
    )),
    (_G.CUSTOMER_SERVICE, "Customer service", (
        _feature("curation_alimtalk", _G.CUSTOMER_SERVICE, "Curation & alerts", "Tailored listing alerts",
                 default_enabled=False, requires_plan=Plan.PRO, premium=True),
        _feature("scoring", _G.CUSTOMER_SERVICE, "Scoring", "Behaviour-based customer scores",
                 requires_plan=Plan.BASIC),
        _feature("sincerity_analysis", _G.CUSTOMER_SERVICE, "Sincerity analysis", "AI buyer sincerity rating",
                 requires_plan=Plan.BASIC, uses_ai=True),
        _feature("realtime_chat", _G.CUSTOMER_SERVICE, "Live chat", "Real-time chat with customers",
                 default_enabled=False, requires_plan=Plan.PRO, premium=True),
        _feature("inspection_booking", _G.CUSTOMER_SERVICE, "Viewing booking", "Customer viewing reservations",
                 default_enabled=False, requires_plan=Plan.BASIC),
        _feature("move_in_guide", _G.CUSTOMER_SERVICE, "Move-in guide", "Move-in procedure guide for tenants",
                 requires_plan=Plan.BASIC),
    )),
    (_G.FIELD, "Field & management", (
        _feature("inspection", _G.FIELD, "Inspection checklist", "On-site checklists and reports",
                 requires_plan=Plan.BASIC),
        _feature("rental_mgmt", _G.FIELD, "Rental management", "Rent collection and repair requests",
                 requires_plan=Plan.BASIC),
    )),
    (_G.LEGAL, "Legal & administration", (
        _feature("registry", _G.LEGAL, "Title registry", "Registry lookup and rights analysis",
                 requires_plan=Plan.PRO),
        _feature("e_signature", _G.LEGAL, "E-signature", "Electronic contract signing",
                 default_enabled=False, requires_plan=Plan.PRO, premium=True),
    )),
    (_G.COLLABORATION, "Collaboration", (
        _feature("co_brokerage", _G.COLLABORATION, "Co-brokerage", "Shared listing pool and requests",
                 requires_plan=Plan.BASIC),
    )),
    (_G.FLOATING, "Floating buttons", (
        _feature("fab_kakao", _G.FLOATING, "Kakao chat", "Kakao channel consultation"),
        _feature("fab_naver", _G.FLOATING, "Naver booking", "Naver reservation link", default_enabled=False),
        _feature("fab_phone", _G.FLOATING, "Phone", "Office phone line"),
        _feature("fab_inquiry", _G.FLOATING, "Quick inquiry", "Quick inquiry form"),
    )),
)

CAPABILITY_FEATURES: Dict[str, Tuple[str, ...]] = {
    # Sidebar sections
    "dashboard": (),
    "properties": ("properties",),
    "inquiries": ("inquiries",),
    "customers": ("crm",),
    "contracts": ("contracts",),
    "ai-tools": ("ai_description", "ai_legal_review", "ai_reply_draft"),
    "analytics": ("avm", "roi_calculator", "location_report", "buy_sell_signal"),
    "legal": ("registry", "e_signature"),
    "co-brokerage": ("co_brokerage",),
    "inspection": ("inspection",),
    "rental-mgmt": ("rental_mgmt",),
    "settings": (),
    # Back-office actions
    "property.create": ("properties",),
    "property.delete": ("properties",),
    "contract.create": ("contracts",),
    "contract.approve": ("contracts",),
    "contract.e-sign": ("e_signature",),
}

CAPABILITY_PERMISSIONS: Dict[str, StaffPermissionKey] = {
    "customers": StaffPermissionKey.CUSTOMER_VIEW,
    "ai-tools": StaffPermissionKey.AI_TOOLS,
    "co-brokerage": StaffPermissionKey.CO_BROKERAGE,
    "settings": StaffPermissionKey.SETTINGS,
    "property.create": StaffPermissionKey.PROPERTY_CREATE,
    "property.delete": StaffPermissionKey.PROPERTY_DELETE,
    "contract.create": StaffPermissionKey.CONTRACT_CREATE,
    "contract.approve": StaffPermissionKey.CONTRACT_APPROVE,
    "contract.e-sign": StaffPermissionKey.E_SIGNATURE,
}

_P = StaffPermissionKey

STAFF_ROLE_PRESETS: Dict[StaffRole, Dict[StaffPermissionKey, bool]] = {
    StaffRole.LEAD_AGENT: {key: True for key in StaffPermissionKey},
    StaffRole.ASSOCIATE_AGENT: {
        _P.PROPERTY_CREATE: True, _P.PROPERTY_DELETE: False,
        _P.CONTRACT_CREATE: True, _P.CONTRACT_APPROVE: False, _P.E_SIGNATURE: False,
        _P.CUSTOMER_VIEW: True, _P.AI_TOOLS: True, _P.CO_BROKERAGE: False, _P.SETTINGS: False,
    },
    StaffRole.ASSISTANT: {
        _P.PROPERTY_CREATE: True, _P.PROPERTY_DELETE: False,
        _P.CONTRACT_CREATE: False, _P.CONTRACT_APPROVE: False, _P.E_SIGNATURE: False,
        _P.CUSTOMER_VIEW: True, _P.AI_TOOLS: False, _P.CO_BROKERAGE: False, _P.SETTINGS: False,
    },
}

SIDEBAR_SECTIONS: Tuple[NavSection, ...] = (
    NavSection("dashboard", "Dashboard", "/admin/dashboard"),
    NavSection("properties", "Listings", "/admin/properties"),
    NavSection("inquiries", "Inquiries", "/admin/inquiries"),
    NavSection("customers", "Customers", "/admin/customers"),
    NavSection("contracts", "Contracts", "/admin/contracts"),
    NavSection("ai-tools", "AI tools", "/admin/ai-tools"),
    NavSection("analytics", "Analytics", "/admin/analytics"),
    NavSection("legal", "Legal", "/admin/legal"),
    NavSection("co-brokerage", "Co-brokerage", "/admin/co-brokerage"),
    NavSection("inspection", "Inspections", "/admin/inspection"),
    NavSection("rental-mgmt", "Rentals", "/admin/rental-mgmt"),
)

MOBILE_TABS: Tuple[NavSection, ...] = (
    NavSection("dashboard", "Dashboard", "/admin/dashboard"),
    NavSection("properties", "Listings", "/admin/properties"),
    NavSection("customers", "Customers", "/admin/customers"),
)


@dataclass(frozen=True)
class Catalog:
    """The immutable tables one engine instance is built from."""
    registry: FeatureRegistry
    plans: PlanCatalog
    capabilities: CapabilityMap
    staff_presets: Mapping[StaffRole, Mapping[StaffPermissionKey, bool]]
    sidebar: Tuple[NavSection, ...] = SIDEBAR_SECTIONS
    mobile_tabs: Tuple[NavSection, ...] = MOBILE_TABS


def build_default_catalog(version: str = DEFAULT_CATALOG_VERSION) -> Catalog:
    """Assemble and cross-check the default product tables."""
    registry = FeatureRegistry(FEATURE_GROUPS)
    capabilities = CapabilityMap(CAPABILITY_FEATURES, CAPABILITY_PERMISSIONS)
    capabilities.validate(registry)

    return Catalog(
        registry=registry,
        plans=PlanCatalog.from_registry(registry, version, PLAN_INFO),
        capabilities=capabilities,
        staff_presets=STAFF_ROLE_PRESETS,
    )
