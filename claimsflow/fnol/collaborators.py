"""
External collaborators consumed by intake.

Each collaborator is an abstract base with a baseline implementation:
- Policy lookup: resolves customer identity and vehicle from a policy number
- Location enrichment: advisory conditions text for the incident location
- Photo analysis: turns an uploaded image reference into a ClaimPhoto

Interfaces are designed for easy swap to real policy-admin, weather and
vision services.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel

from ..utils.errors import DependencyUnavailableError
from .schema import ClaimPhoto, PhotoCategory, VehicleInfo

logger = logging.getLogger(__name__)


# ============================================================================
# Policy Lookup
# ============================================================================


class PolicyRecord(BaseModel):
    """Identity and vehicle data held against a policy."""
    policy_number: str
    customer_name: str
    customer_email: str
    customer_phone: str
    vehicle_info: VehicleInfo


class PolicyLookup(ABC):
    """Base class for policy lookup."""

    @abstractmethod
    def lookup_policy(self, policy_number: str) -> Optional[PolicyRecord]:
        """
        Resolve a policy number.

        Returns:
            PolicyRecord, or None when the policy does not exist

        Raises:
            DependencyUnavailableError: the policy system could not be reached
        """
        pass


DEMO_POLICIES = [
    PolicyRecord(
        policy_number="POL-123456",
        customer_name="John Smith",
        customer_email="john.smith@email.com",
        customer_phone="(555) 123-4567",
        vehicle_info=VehicleInfo(
            make="Toyota",
            model="Camry",
            year=2022,
            vin="1HGBH41JXMN109186",
            license_plate="ABC-1234",
        ),
    ),
    PolicyRecord(
        policy_number="POL-778899",
        customer_name="Maria Garcia",
        customer_email="maria.garcia@email.com",
        customer_phone="(555) 987-6543",
        vehicle_info=VehicleInfo(
            make="Honda",
            model="Civic",
            year=2019,
            vin="2HGFC2F59KH512345",
            license_plate="XYZ-7788",
        ),
    ),
]


class InMemoryPolicyLookup(PolicyLookup):
    """Policy directory held in memory. Ships with demo policies."""

    def __init__(self, policies: Optional[List[PolicyRecord]] = None):
        records = DEMO_POLICIES if policies is None else policies
        self._policies: Dict[str, PolicyRecord] = {
            p.policy_number.upper(): p for p in records
        }
        self.available = True

    def add(self, record: PolicyRecord) -> None:
        self._policies[record.policy_number.upper()] = record

    def lookup_policy(self, policy_number: str) -> Optional[PolicyRecord]:
        if not self.available:
            raise DependencyUnavailableError("policy lookup", "policy directory offline")
        return self._policies.get(policy_number.upper())


# ============================================================================
# Location Enrichment
# ============================================================================


class LocationEnricher(ABC):
    """Base class for advisory location enrichment."""

    @abstractmethod
    def enrich(self, location: str, timestamp: Optional[datetime]) -> str:
        """Return advisory text about conditions at the location and time."""
        pass


class StaticConditionsEnricher(LocationEnricher):
    """
    Baseline enricher returning fixed conditions text.

    This is a placeholder for a weather/traffic service.
    """

    def enrich(self, location: str, timestamp: Optional[datetime]) -> str:
        return (
            f"Location identified: {location}. Weather conditions at time of incident: "
            "Clear skies, 72°F. No traffic incidents reported in area."
        )


# ============================================================================
# Photo Analysis
# ============================================================================


class PhotoAnalyzer(ABC):
    """Base class for photo capture analysis."""

    @abstractmethod
    def analyze(self, url: str, category: Optional[PhotoCategory] = None) -> ClaimPhoto:
        """Build a ClaimPhoto for an uploaded image reference."""
        pass

    def analyze_batch(self, urls: List[str]) -> List[ClaimPhoto]:
        """Analyze multiple images."""
        return [self.analyze(url) for url in urls]


class KeywordPhotoAnalyzer(PhotoAnalyzer):
    """
    Baseline analyzer using filename heuristics.

    Category comes from keywords in the file name; the annotation is a
    canned observation for that category.
    """

    CATEGORY_KEYWORDS = {
        PhotoCategory.FRONT: ["front", "bumper", "hood", "grille"],
        PhotoCategory.REAR: ["rear", "back", "trunk", "tail"],
        PhotoCategory.LEFT: ["left", "driver"],
        PhotoCategory.RIGHT: ["right", "passenger"],
        PhotoCategory.INTERIOR: ["interior", "dash", "seat", "cabin"],
        PhotoCategory.DOCUMENT: ["report", "police", "receipt", "invoice", "estimate", "doc"],
    }

    ANALYSES = {
        PhotoCategory.FRONT: "Visible damage detected on front bumper area",
        PhotoCategory.REAR: "Dent detected approximately 6 inches in diameter",
        PhotoCategory.LEFT: "Minor scratches identified on panel",
        PhotoCategory.RIGHT: "Minor scratches identified on panel",
        PhotoCategory.INTERIOR: "Interior visible - no structural damage apparent",
        PhotoCategory.DAMAGE: "Paint damage and possible structural impact",
        PhotoCategory.DOCUMENT: "Document captured - text legible for review",
    }

    def classify(self, url: str) -> PhotoCategory:
        stem = Path(url).stem.lower()
        for category, keywords in self.CATEGORY_KEYWORDS.items():
            if any(keyword in stem for keyword in keywords):
                return category
        return PhotoCategory.DAMAGE

    def analyze(self, url: str, category: Optional[PhotoCategory] = None) -> ClaimPhoto:
        resolved = category or self.classify(url)
        logger.debug(f"Photo {url} classified as {resolved.value}")
        return ClaimPhoto(
            url=url,
            category=resolved,
            ai_analysis=self.ANALYSES[resolved],
        )
