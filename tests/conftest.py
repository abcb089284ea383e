import pytest

from form_core import Component, ComponentKind, FormBuilder, FormState, Page, create_component


class FakeClock:
    """Manually advanced clock for the add throttle."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# Common test fixtures
@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def builder(clock):
    """An empty single-page form builder on a fake clock."""
    return FormBuilder(clock=clock)


@pytest.fixture
def leaf():
    """Factory for leaf components with readable ids."""
    def make(component_id: str, kind: ComponentKind = ComponentKind.TEXT_INPUT) -> Component:
        return create_component(kind, component_id=component_id)
    return make


@pytest.fixture
def row():
    """Factory for horizontal groups around existing components."""
    def make(component_id: str, *children: Component) -> Component:
        return Component(id=component_id, kind=ComponentKind.HORIZONTAL_GROUP, label="Row", children=children)
    return make


@pytest.fixture
def column():
    """Factory for vertical groups around existing components."""
    def make(component_id: str, *children: Component) -> Component:
        return Component(id=component_id, kind=ComponentKind.VERTICAL_GROUP, label="Column", children=children)
    return make


@pytest.fixture
def state_with():
    """Build a single-page FormState from root components."""
    def make(*components: Component, title: str = "Test Form") -> FormState:
        page = Page(id="page_1", title="Page 1", components=components)
        return FormState(title=title, pages=(page,), current_page_id=page.id)
    return make
