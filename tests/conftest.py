import pytest

from catalog_resolver.catalog_store import SQLiteCatalogStore
from catalog_resolver.config import ResolverConfig
from catalog_resolver.models import CatalogItemDraft, make_passage
from catalog_resolver.resolution import create_resolver

TENANT_ID = "shop-1"


@pytest.fixture
def tenant_id():
    return TENANT_ID


@pytest.fixture
def store():
    """In-memory catalog store."""
    store = SQLiteCatalogStore(":memory:")
    yield store
    store.close()


@pytest.fixture
def catalog(store):
    """Two sibling IPL devices, an unrelated IPL device and a brand without models."""
    items = store.save_items([
        CatalogItemDraft(
            tenant_id=TENANT_ID,
            item_id="g3",
            title="IVISKIN G3",
            brand="IVISKIN",
            model="G3",
            url="https://example.com/iviskin-g3",
        ),
        CatalogItemDraft(
            tenant_id=TENANT_ID,
            item_id="g4",
            title="IVISKIN G4",
            brand="IVISKIN",
            model="G4",
            url="https://example.com/iviskin-g4",
        ),
        CatalogItemDraft(
            tenant_id=TENANT_ID,
            item_id="pl5",
            title="Braun Silk-expert Pro 5",
            brand="Braun",
            model="PL5",
            url="https://example.com/braun-pl5",
        ),
        CatalogItemDraft(
            tenant_id=TENANT_ID,
            item_id="wix",
            title="Wix Website Builder",
            brand="Wix",
            url="https://example.com/wix",
        ),
    ])
    return {item.item_id: item for item in items}


@pytest.fixture
def config():
    return ResolverConfig()


@pytest.fixture
def resolver(config, store, catalog):
    resolver = create_resolver(config, store)
    yield resolver
    resolver.close()


@pytest.fixture
def ipl_passages():
    """Passages as a similarity search returns them for a G3 question."""
    return [
        make_passage("IVISKIN G3 weighs 450 g and offers 5 intensity levels.", "g3-manual"),
        make_passage("The IVISKIN G4 weighs 520 g including the cooling plate.", "g4-manual"),
        make_passage("IPL treatments work best on freshly shaved skin.", "ipl-guide"),
    ]
