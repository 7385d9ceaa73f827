"""Pytest configuration for scheme-match tests."""

from dataclasses import replace
from datetime import datetime
from pathlib import Path

import pytest
from dotenv import load_dotenv

from scheme_match.exceptions import RetrievalUnavailable
from scheme_match.models import (
    ActivityLogEntry,
    CatalogRecord,
    ContactRecord,
    Plot,
    PlotCrop,
    Profile,
    ProfileCore,
)
from scheme_match.profile import ProfileAggregator
from scheme_match.retrieval import (
    HybridSearch,
    InMemoryVectorIndex,
    RetryPolicy,
    StructuredQuery,
)
from scheme_match.storage import InMemoryCatalogStore, InMemoryProfileStore

# Local .env (QDRANT_ENDPOINT, GROQ_API_KEY, ...) for manual integration runs
load_dotenv(Path(__file__).parent.parent / ".env")


FARMER_ID = "f3a1c2d4-5b6e-4f70-8a91-b2c3d4e5f601"
EMPTY_FARMER_ID = "0b1c2d3e-4f50-4617-8293-a4b5c6d7e8f9"

UJJWALA_ID = "1c9f0a2e-3b4d-4e5f-8a6b-7c8d9e0f1a2b"
KISAN_ID = "2d0a1b3f-4c5e-4f60-9b7c-8d9e0f1a2b3c"
FASAL_BIMA_ID = "3e1b2c40-5d6f-4071-8c8d-9e0f1a2b3c4d"
SINCHAYEE_ID = "4f2c3d51-6e70-4182-9d9e-0f1a2b3c4d5e"
SOIL_HEALTH_ID = "5a3d4e62-7f81-4293-8eaf-1a2b3c4d5e6f"
KARJMUKTI_ID = "6b4e5f73-8092-43a4-9fb0-2b3c4d5e6f70"
RYTHU_BANDHU_ID = "7c5f6084-91a3-44b5-80c1-3c4d5e6f7081"
KISAN_CREDIT_ID = "8d607195-a2b4-45c6-91d2-4d5e6f708192"


@pytest.fixture
def farmer_id():
    return FARMER_ID


@pytest.fixture
def empty_farmer_id():
    """A farmer with a core row and nothing else."""
    return EMPTY_FARMER_ID


@pytest.fixture
def scheme_ids():
    return {
        "ujjwala": UJJWALA_ID,
        "kisan": KISAN_ID,
        "fasal_bima": FASAL_BIMA_ID,
        "sinchayee": SINCHAYEE_ID,
        "soil_health": SOIL_HEALTH_ID,
        "karjmukti": KARJMUKTI_ID,
        "rythu_bandhu": RYTHU_BANDHU_ID,
        "kisan_credit": KISAN_CREDIT_ID,
    }


# =============================================================================
# Fakes
# =============================================================================


class MockEmbeddingProvider:
    """Deterministic bag-of-words embeddings; shared words mean similar vectors."""

    def __init__(self, dimension: int = 64):
        self.dimension = dimension
        self.call_count = 0

    def vector(self, text: str) -> list[float]:
        embedding = [0.0] * self.dimension
        words = text.lower().replace(",", " ").replace(":", " ").split()
        for word in words:
            h = sum(ord(c) * (i + 1) for i, c in enumerate(word))
            for j in range(3):
                embedding[(h + j * 7) % self.dimension] += 1.0

        magnitude = sum(x * x for x in embedding) ** 0.5
        if magnitude > 0:
            embedding = [x / magnitude for x in embedding]
        return embedding

    async def embed(self, text: str) -> list[float]:
        self.call_count += 1
        return self.vector(text)


class UnavailableEmbedder:
    """Embedder whose backend is always down."""

    def __init__(self):
        self.call_count = 0

    async def embed(self, text: str) -> list[float]:
        self.call_count += 1
        raise RetrievalUnavailable("embedding service down", source="embedding")


class UnavailableCatalogStore:
    """Catalog store whose database is always down."""

    def __init__(self):
        self.call_count = 0

    async def search_schemes(self, field, text):
        self.call_count += 1
        raise ConnectionError("database refused connection")

    async def get_scheme(self, scheme_id):
        self.call_count += 1
        raise ConnectionError("database refused connection")


# =============================================================================
# Catalog fixtures
# =============================================================================


def _scheme(scheme_id, name, ministry, state, description, category="") -> CatalogRecord:
    return CatalogRecord.from_row({
        "id": scheme_id,
        "scheme_name": name,
        "ministry": ministry,
        "state": state,
        "description": description,
        "category": category,
    })


@pytest.fixture
def mock_embedder():
    return MockEmbeddingProvider()


@pytest.fixture
def unavailable_embedder():
    return UnavailableEmbedder()


@pytest.fixture
def sample_schemes(mock_embedder):
    """Eight schemes with embeddings over name and description."""
    schemes = [
        _scheme(
            UJJWALA_ID, "Pradhan Mantri Ujjwala Yojana",
            "Ministry of Petroleum and Natural Gas", "All India",
            "Free LPG connections to women from below poverty line rural households",
            "welfare",
        ),
        _scheme(
            KISAN_ID, "Pradhan Mantri Kisan Samman Nidhi",
            "Ministry of Agriculture and Farmers Welfare", "All India",
            "Income support of Rs 6000 per year to small and marginal farmer families with cultivable land",
            "income support",
        ),
        _scheme(
            FASAL_BIMA_ID, "Pradhan Mantri Fasal Bima Yojana",
            "Ministry of Agriculture and Farmers Welfare", "All India",
            "Crop insurance against yield loss for sugarcane soybean paddy and cotton crops",
            "insurance",
        ),
        _scheme(
            SINCHAYEE_ID, "Pradhan Mantri Krishi Sinchayee Yojana",
            "Ministry of Jal Shakti", "All India",
            "Drip and sprinkler irrigation subsidy and farm equipment, per drop more crop",
            "irrigation",
        ),
        _scheme(
            SOIL_HEALTH_ID, "Soil Health Card Scheme",
            "Ministry of Agriculture and Farmers Welfare", "All India",
            "Soil testing and nutrient recommendations for black and loamy soil plots",
            "soil",
        ),
        _scheme(
            KARJMUKTI_ID, "Mahatma Jyotiba Phule Shetkari Karjmukti Yojana",
            "Government of Maharashtra", "Maharashtra",
            "Crop loan waiver for farmers in Maharashtra",
            "credit",
        ),
        _scheme(
            RYTHU_BANDHU_ID, "Rythu Bandhu",
            "Government of Telangana", "Telangana",
            "Investment support per acre of land for farmers in Telangana",
            "income support",
        ),
        _scheme(
            KISAN_CREDIT_ID, "Kisan Credit Card",
            "Ministry of Agriculture and Farmers Welfare", "All India",
            "Short term credit for crop cultivation and farm equipment for farmers",
            "credit",
        ),
    ]
    return [
        replace(s, embedding=tuple(mock_embedder.vector(f"{s.name} {s.description}")))
        for s in schemes
    ]


@pytest.fixture
def unavailable_catalog_store():
    return UnavailableCatalogStore()


@pytest.fixture
def catalog_store(sample_schemes):
    return InMemoryCatalogStore(sample_schemes)


@pytest.fixture
def vector_index(sample_schemes):
    return InMemoryVectorIndex(sample_schemes)


@pytest.fixture
def fast_retry():
    """Two quick attempts, no backoff sleep."""
    return RetryPolicy(
        max_attempts=2,
        timeout_seconds=1.0,
        base_delay_seconds=0.0,
        max_delay_seconds=0.0,
    )


@pytest.fixture
def hybrid_search(mock_embedder, vector_index, fast_retry):
    return HybridSearch(mock_embedder, vector_index, fast_retry)


@pytest.fixture
def structured_query(catalog_store, fast_retry):
    return StructuredQuery(catalog_store, fast_retry)


# =============================================================================
# Profile fixtures
# =============================================================================


@pytest.fixture
def sample_core():
    return ProfileCore(
        id=FARMER_ID,
        name="Ramesh Patil",
        state="Maharashtra",
        district="Pune",
        village="Baramati",
        age=45,
        gender="Male",
        education="Secondary",
        experience_years=20,
        total_land_acres=4.5,
        land_ownership="owned",
    )


@pytest.fixture
def profile_store(sample_core):
    store = InMemoryProfileStore()
    store.add_profile(
        sample_core,
        contact=ContactRecord(phone="+91-9800000001", address="Baramati, Pune"),
        plots=[
            Plot(
                id="plot-1", farmer_id=FARMER_ID, name="North field", area_acres=3.0,
                soil_type="black", irrigation_method="drip", ownership_status="owned",
            ),
            Plot(
                id="plot-2", farmer_id=FARMER_ID, name="Canal field", area_acres=1.5,
                soil_type="loamy", irrigation_method="canal", ownership_status="owned",
            ),
        ],
        crops=[
            PlotCrop(id="crop-1", farmer_id=FARMER_ID, plot_id="plot-1",
                     crop_name="Sugarcane", season="kharif"),
            PlotCrop(id="crop-2", farmer_id=FARMER_ID, plot_id="plot-2",
                     crop_name="Soybean", season="kharif"),
        ],
        logs=[
            ActivityLogEntry(id="log-2", farmer_id=FARMER_ID, activity_type="irrigation",
                             description="Drip line repaired",
                             created_at=datetime(2024, 7, 2, 9, 0)),
            ActivityLogEntry(id="log-1", farmer_id=FARMER_ID, activity_type="sowing",
                             description="Soybean sown",
                             created_at=datetime(2024, 6, 15, 7, 30)),
        ],
    )
    store.add_profile(ProfileCore(id=EMPTY_FARMER_ID, name="New Farmer", state="Telangana"))
    return store


@pytest.fixture
def aggregator(profile_store, fast_retry):
    return ProfileAggregator(profile_store, fast_retry)


@pytest.fixture
def sample_profile(profile_store):
    """The aggregated view of FARMER_ID, built without the aggregator."""
    return Profile(
        core=profile_store.profiles[FARMER_ID],
        contact=profile_store.contacts[FARMER_ID],
        plots=list(profile_store.plots[FARMER_ID]),
        crops=list(profile_store.crops[FARMER_ID]),
        logs=sorted(profile_store.logs[FARMER_ID], key=lambda e: e.created_at),
    )
