"""Render-tree builder capability and a recording implementation.

The grid never produces output itself: it describes elements, attributes,
content and child components to a ``RendererTreeBuilder`` supplied by the
host. ``RecordingTreeBuilder`` keeps the description as a ``RenderNode``
tree, which tests and simple hosts can inspect or serialize to HTML.
"""

# pylint: disable=unnecessary-ellipsis

from __future__ import annotations

import html

from dataclasses import dataclass, field
from typing import Any, Literal, Protocol


class MarkupString(str):
    """Content that is already markup and must not be escaped again."""

    __slots__ = ()

    def __html__(self) -> str:
        return str(self)


class RendererTreeBuilder(Protocol):
    """Tree-construction sink for one render pass."""

    def open_element(self, name: str) -> RendererTreeBuilder:
        ...

    def close_element(self) -> RendererTreeBuilder:
        ...

    def add_attribute(self, name: str, value: Any) -> RendererTreeBuilder:
        ...

    def add_content(self, content: Any) -> RendererTreeBuilder:
        ...

    def open_component(self, component_type: Any) -> RendererTreeBuilder:
        ...

    def close_component(self) -> RendererTreeBuilder:
        ...


NodeKind = Literal["root", "element", "component", "text", "markup"]


@dataclass
class RenderNode:
    """A recorded element, component or content node."""

    kind: NodeKind
    name: str = ""
    attributes: dict[str, Any] = field(default_factory=dict)
    children: list[RenderNode] = field(default_factory=list)
    text: str = ""
    component_type: Any = None

    def iter(self, name: str | None = None) -> list[RenderNode]:
        """All descendant nodes, depth first, optionally filtered by element name."""
        found = []
        for child in self.children:
            if name is None or child.name == name:
                found.append(child)
            found.extend(child.iter(name))
        return found

    def find_all(self, name: str) -> list[RenderNode]:
        return self.iter(name)

    def components(self, component_type: Any = None) -> list[RenderNode]:
        return [
            n for n in self.iter()
            if n.kind == "component" and (component_type is None or n.component_type is component_type)
        ]

    @property
    def inner_text(self) -> str:
        """Concatenated text and markup content below this node."""
        if self.kind in ("text", "markup"):
            return self.text
        return "".join(child.inner_text for child in self.children)

    def to_html(self) -> str:
        """Serialize to HTML; callables and component nodes are skipped."""
        if self.kind == "text":
            return html.escape(self.text)
        if self.kind == "markup":
            return self.text
        inner = "".join(child.to_html() for child in self.children)
        if self.kind != "element":
            return inner
        attrs = "".join(_render_attribute(k, v) for k, v in self.attributes.items())
        return f"<{self.name}{attrs}>{inner}</{self.name}>"


def _render_attribute(name: str, value: Any) -> str:
    if callable(value) or value is None or value is False:
        return ""
    if value is True:
        return f" {name}"
    return f' {name}="{html.escape(str(value), quote=True)}"'


class RecordingTreeBuilder:
    """Records builder calls into a ``RenderNode`` tree.

    Attributes apply to the most recently opened element or component.
    """

    def __init__(self) -> None:
        self.root = RenderNode(kind="root")
        self._stack: list[RenderNode] = [self.root]

    @property
    def current(self) -> RenderNode:
        return self._stack[-1]

    def open_element(self, name: str) -> RecordingTreeBuilder:
        node = RenderNode(kind="element", name=name)
        self.current.children.append(node)
        self._stack.append(node)
        return self

    def close_element(self) -> RecordingTreeBuilder:
        self._close("element")
        return self

    def add_attribute(self, name: str, value: Any) -> RecordingTreeBuilder:
        self.current.attributes[name] = value
        return self

    def add_content(self, content: Any) -> RecordingTreeBuilder:
        if isinstance(content, MarkupString):
            self.current.children.append(RenderNode(kind="markup", text=str(content)))
        else:
            text = "" if content is None else str(content)
            self.current.children.append(RenderNode(kind="text", text=text))
        return self

    def open_component(self, component_type: Any) -> RecordingTreeBuilder:
        name = getattr(component_type, "__name__", str(component_type))
        node = RenderNode(kind="component", name=name, component_type=component_type)
        self.current.children.append(node)
        self._stack.append(node)
        return self

    def close_component(self) -> RecordingTreeBuilder:
        self._close("component")
        return self

    def _close(self, kind: NodeKind) -> None:
        node = self.current
        if node.kind != kind:
            raise RuntimeError(f"Cannot close {kind}: innermost open node is a {node.kind} '{node.name}'")
        self._stack.pop()

    def to_html(self) -> str:
        return self.root.to_html()
