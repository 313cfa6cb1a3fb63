import pytest
from apps.drops.services import create_drop


@pytest.fixture
def pending_drop_factory(pickup_point, supplier_list, marketplace_admin):
    """Factory for extra drops awaiting approval."""
    def _make(name='Extra Drop'):
        return create_drop(
            name=name,
            pickup_point=pickup_point,
            supplier_list=supplier_list,
            created_by=marketplace_admin,
        )
    return _make
