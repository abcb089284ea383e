"""
Action models for the form state engine.

One model per state change, discriminated by `type`, so a whole edit can be
described as data (e.g. sent over the wire) and replayed with
`engine.execute_action`.
"""

from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .models import ComponentKind, DropIntent


class _Action(BaseModel):
    model_config = ConfigDict(frozen=True)


class AddComponentAction(_Action):
    type: Literal["add_component"] = "add_component"
    kind: ComponentKind
    target_id: Optional[str] = None
    intent: DropIntent = DropIntent.INSIDE


class UpdateComponentAction(_Action):
    type: Literal["update_component"] = "update_component"
    component_id: str
    attrs: dict[str, Any]


class DeleteComponentAction(_Action):
    type: Literal["delete_component"] = "delete_component"
    component_id: str


class MoveComponentAction(_Action):
    type: Literal["move_component"] = "move_component"
    component_id: str
    target_id: Optional[str] = None
    intent: DropIntent = DropIntent.INSIDE


class SelectComponentAction(_Action):
    type: Literal["select_component"] = "select_component"
    component_id: Optional[str] = None


class AddPageAction(_Action):
    type: Literal["add_page"] = "add_page"
    title: Optional[str] = None


class DeletePageAction(_Action):
    type: Literal["delete_page"] = "delete_page"
    page_id: str


class RenamePageAction(_Action):
    type: Literal["rename_page"] = "rename_page"
    page_id: str
    title: str


class SwitchPageAction(_Action):
    type: Literal["switch_page"] = "switch_page"
    page_id: str


class RenameFormAction(_Action):
    type: Literal["rename_form"] = "rename_form"
    title: str


FormAction = Annotated[
    Union[
        AddComponentAction,
        UpdateComponentAction,
        DeleteComponentAction,
        MoveComponentAction,
        SelectComponentAction,
        AddPageAction,
        DeletePageAction,
        RenamePageAction,
        SwitchPageAction,
        RenameFormAction,
    ],
    Field(discriminator="type"),
]

# Actions that only move the view around; they never create undo steps
NAVIGATION_ACTIONS = (SelectComponentAction, SwitchPageAction)
