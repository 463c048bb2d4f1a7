"""Reference headless toolkit.

These classes mirror the common controls of desktop UI toolkits without
rendering anything. They form the default auto-registration namespace:
every public `Node` subclass defined here resolves by its class name.
"""

from enum import StrEnum
from typing import Any

from dynui.conversion import Brush, CornerRadius, FontWeight, GridLength, Thickness
from dynui.nodes import ContentNode, ItemsNode, Node, PanelNode


class HorizontalAlignment(StrEnum):
    """Horizontal placement within the parent slot."""

    STRETCH = 'stretch'
    LEFT = 'left'
    CENTER = 'center'
    RIGHT = 'right'


class VerticalAlignment(StrEnum):
    """Vertical placement within the parent slot."""

    STRETCH = 'stretch'
    TOP = 'top'
    CENTER = 'center'
    BOTTOM = 'bottom'


class Orientation(StrEnum):
    """Stacking direction of panels and range controls."""

    VERTICAL = 'vertical'
    HORIZONTAL = 'horizontal'


class Visibility(StrEnum):
    """Display state of a control."""

    VISIBLE = 'visible'
    HIDDEN = 'hidden'
    COLLAPSED = 'collapsed'


class Dock(StrEnum):
    """Edge a `DockPanel` child is docked to."""

    LEFT = 'left'
    TOP = 'top'
    RIGHT = 'right'
    BOTTOM = 'bottom'


class TextWrapping(StrEnum):
    """Line breaking of text."""

    NO_WRAP = 'nowrap'
    WRAP = 'wrap'
    WRAP_WITH_OVERFLOW = 'wrapwithoverflow'


class Stretch(StrEnum):
    """Scaling of content into the available space."""

    NONE = 'none'
    FILL = 'fill'
    UNIFORM = 'uniform'
    UNIFORM_TO_FILL = 'uniformtofill'


class Control(Node):
    """Common layout and appearance properties."""

    name: str | None = None
    width: float | None = None
    height: float | None = None
    min_width: float | None = None
    max_width: float | None = None
    min_height: float | None = None
    max_height: float | None = None
    margin: Thickness = Thickness()
    padding: Thickness = Thickness()
    opacity: float = 1.0
    visibility: Visibility = Visibility.VISIBLE
    is_enabled: bool = True
    horizontal_alignment: HorizontalAlignment = HorizontalAlignment.STRETCH
    vertical_alignment: VerticalAlignment = VerticalAlignment.STRETCH
    background: Brush | None = None
    foreground: Brush | None = None
    border_brush: Brush | None = None
    border_thickness: Thickness = Thickness()
    font_family: str | None = None
    font_size: float | None = None
    font_weight: FontWeight = FontWeight.NORMAL
    tag: Any = None


class Window(ContentNode, Control):
    """Top-level window holding a single content."""

    title: str = ''


class TextBlock(Control):
    """Read-only text."""

    text: str = ''
    text_wrapping: TextWrapping = TextWrapping.NO_WRAP


class Label(ContentNode, Control):
    """Caption holding a single content."""


class TextBox(Control):
    """Editable text field."""

    text: str = ''
    watermark: str | None = None
    is_read_only: bool = False
    max_length: int = 0
    accepts_return: bool = False


class Button(ContentNode, Control):
    """Push button holding a single content."""

    command: Any = None
    is_default: bool = False


class ToggleButton(Button):
    """Button with a checked state."""

    is_checked: bool | None = False


class CheckBox(ToggleButton):
    """Check box; `is_checked` is None when indeterminate."""


class RadioButton(ToggleButton):
    """Toggle exclusive within its `group_name`."""

    group_name: str | None = None


class ComboBox(ItemsNode, Control):
    """Drop-down selection over its items."""

    selected_index: int = -1
    placeholder_text: str | None = None


class ListBox(ItemsNode, Control):
    """Scrollable selection list over its items."""

    selected_index: int = -1


class RangeControl(Control):
    """Value bounded by `minimum` and `maximum`."""

    minimum: float = 0.0
    maximum: float = 100.0
    value: float = 0.0


class Slider(RangeControl):
    """Draggable range input."""

    orientation: Orientation = Orientation.HORIZONTAL
    tick_frequency: float = 0.0


class ProgressBar(RangeControl):
    """Range display of a running task."""

    is_indeterminate: bool = False
    orientation: Orientation = Orientation.HORIZONTAL


class Border(ContentNode, Control):
    """Frame around a single content."""

    corner_radius: CornerRadius = CornerRadius()


class Rectangle(Control):
    """Filled and stroked rectangle shape."""

    fill: Brush | None = None
    stroke: Brush | None = None
    stroke_thickness: float = 0.0
    radius_x: float = 0.0
    radius_y: float = 0.0


class Panel(PanelNode, Control):
    """Ordered container without layout rules."""


class StackPanel(Panel):
    """Children stacked in one direction."""

    orientation: Orientation = Orientation.VERTICAL
    spacing: float = 0.0


class WrapPanel(Panel):
    """Children flowing onto new lines when space runs out."""

    orientation: Orientation = Orientation.HORIZONTAL


class Canvas(Panel):
    """Children positioned by attached coordinates."""


class DockPanel(Panel):
    """Children docked to the edges of the panel."""

    last_child_fill: bool = True


class Grid(Panel):
    """Children placed in rows and columns."""

    def __init__(self) -> None:
        super().__init__()
        self.column_definitions: list[GridLength] = []
        self.row_definitions: list[GridLength] = []


class TabItem(ContentNode, Control):
    """Single page of a `TabControl`."""

    header: Any = None
    is_selected: bool = False


class TabControl(ItemsNode, Control):
    """Pages shown one at a time."""

    selected_index: int = 0


class ScrollViewer(ContentNode, Control):
    """Scrollable area around a single content."""

    horizontal_scroll_bar_visibility: Visibility = Visibility.HIDDEN
    vertical_scroll_bar_visibility: Visibility = Visibility.VISIBLE


class Viewbox(ContentNode, Control):
    """Scales a single content to the available space."""

    stretch: Stretch = Stretch.UNIFORM


class Image(Control):
    """Bitmap loaded from `source`."""

    source: str | None = None
    stretch: Stretch = Stretch.UNIFORM


class Separator(Control):
    """Visual divider between adjacent controls."""


class Expander(ContentNode, Control):
    """Collapsible area under a header."""

    header: Any = None
    is_expanded: bool = False
