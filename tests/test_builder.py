"""Tests for the builder orchestrator."""

import asyncio
from datetime import timedelta
from typing import TYPE_CHECKING, Any

import pytest

from dynui.binding import Binding
from dynui.conversion import Color, FontWeight, Thickness
from dynui.core import Builder, NodeState, Severity
from dynui.descriptors import NodeDescriptor, PropertyEntry
from dynui.errors import (
    BuildCancelledError,
    PropertyAssignmentError,
    PropertyValidationError,
    TypeResolutionError,
)
from dynui.registry import Registry
from dynui.settings import BuilderSettings
from dynui.setters import AsyncPropertySetter
from dynui.widgets import (
    Border,
    Button,
    ComboBox,
    Grid,
    Image,
    Orientation,
    Panel,
    StackPanel,
    TextBlock,
    Window,
)
from tests.examples.plugins import AsyncCaptionSetter, Badge, ExamplePlugin, Unattachable

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from pytest_mock import MockerFixture

    from dynui.conversion import TypeConversionEngine


class CancellingSetter(AsyncPropertySetter):
    """Requests cancellation when assigning `Stop`."""

    def __init__(self, event: asyncio.Event) -> None:
        self.event = event

    def can_handle(self, node: Any, name: str) -> bool:  # noqa: ANN401
        return name.casefold() == 'stop'

    def apply(self, node: Any, name: str, value: str, *,  # noqa: ANN401
              conversion: 'TypeConversionEngine') -> None:
        raise NotImplementedError

    async def apply_async(self, node: Any, name: str, value: str, *,  # noqa: ANN401
                          conversion: 'TypeConversionEngine') -> None:
        self.event.set()


def _node(type_name: str, *properties: tuple[str, str | None],
          children: list[NodeDescriptor] | None = None,
          group_name: str | None = None) -> NodeDescriptor:
    """Create a descriptor from `(name, value)` pairs."""
    return NodeDescriptor(
        type_name=type_name,
        properties=[PropertyEntry(name=name, raw_value=value) for name, value in properties],
        children=children or [],
        group_name=group_name,
    )


def test_build_text_layout(builder: Builder, write_file: 'Callable[[str, str], Path]') -> None:
    """Verify a complete build of a Text DSL layout."""
    path = write_file('layout.txt', (
        'Grupo=Main\n'
        'StackPanel;Name=root;Orientation=Horizontal;Spacing=4\n'
        '  Button;Content=Ok;Width=80;IsDefault=true\n'
        '  TextBlock;Text=Hello;FontWeight=Bold;Margin=1,2\n'
    ))
    window = Window()

    report = builder.build_from_file(window, path)

    panel = window.content
    assert isinstance(panel, StackPanel)
    assert panel.parent is window
    assert panel.name == 'root'
    assert panel.orientation is Orientation.HORIZONTAL
    assert panel.spacing == 4.0

    button, text = panel.children
    assert button.content == 'Ok'
    assert button.width == 80.0
    assert button.is_default is True
    assert text.font_weight is FontWeight.BOLD
    assert text.margin == Thickness(left=1, top=2, right=1, bottom=2)
    assert all(node.data_context == 'Main' for node in (panel, button, text))

    assert report.source_file == str(path)
    assert report.total_nodes == 3
    assert report.succeeded == 3
    assert report.error_count == 0
    assert report.warning_count == 0
    assert report.info_count == 3
    assert (report.setters, report.validators, report.converters) == (6, 7, 8)
    assert report.duration >= 0
    assert report.model_dump(mode='json')['succeeded'] == 3


def test_validation_error_blocks_property(builder: Builder) -> None:
    """Verify that a validation error blocks only its property."""
    container = StackPanel()

    report = builder.build(container, [_node('Button', ('Opacity', '1.5'), ('Content', 'Ok'))])

    (button,) = container.children
    assert button.opacity == 1.0
    assert button.content == 'Ok'

    (result,) = report.nodes
    assert result.state is NodeState.SUCCESS
    assert (result.applied, result.blocked) == (1, 1)

    (message,) = [item for item in report.messages if item.severity is Severity.ERROR]
    assert message.message == 'Opacity: 1.5 is outside of [0, 1]'
    assert (message.type_name, message.property) == ('Button', 'Opacity')


def test_validation_warning_does_not_block(builder: Builder) -> None:
    """Verify that warnings are reported and the value assigned."""
    container = StackPanel()

    report = builder.build(container, [_node('Button', ('Width', '6000'))])

    assert container.children[0].width == 6000.0
    assert report.by_severity(Severity.WARNING) == ['Width: 6000 is unusually large']
    assert not report.has_errors


def test_validation_disabled(registry: Registry) -> None:
    """Verify building without property validation."""
    builder = Builder(registry, settings=BuilderSettings(validate_properties=False))
    container = StackPanel()

    report = builder.build(container, [_node('Button', ('Opacity', '1.5'))])

    assert container.children[0].opacity == 1.5
    assert report.error_count == 0


def test_validation_of_json_layout(registry: Registry, write_file: 'Callable[[str, str], Path]') -> None:
    """Verify that validation errors of a JSON layout block the property."""
    registry.types.register('Box', Border)
    builder = Builder(registry)
    path = write_file('layout.json', '{"controls": [{"type": "Box", "properties": {"Opacity": "2.5"}}]}')
    container = StackPanel()

    report = builder.build_from_file(container, path)

    (box,) = container.children
    assert isinstance(box, Border)
    assert box.opacity == 1.0
    assert report.error_count == 1
    assert report.by_severity(Severity.ERROR) == ['Opacity: 2.5 is outside of [0, 1]']
    assert report.nodes[0].blocked == 1


def test_image_paths_relative_to_layout(builder: Builder,
                                        write_file: 'Callable[[str, str], Path]') -> None:
    """Verify that image sources are checked against the layout directory."""
    write_file('assets/logo.png', '')
    path = write_file('assets/layout.txt', (
        'StackPanel\n'
        '  Image;Source=logo.png\n'
        '  Image;Source=missing.png\n'
    ))
    container = StackPanel()

    report = builder.build_from_file(container, path)

    assert [image.source for image in container.children[0].children] == ['logo.png', 'missing.png']
    assert report.by_severity(Severity.WARNING) == ["Source: file 'missing.png' does not exist"]


def test_conversion_failure(builder: Builder) -> None:
    """Verify that a failed assignment is reported and the build continues."""
    container = StackPanel()

    report = builder.build(container, [
        _node('Button', ('IsDefault', 'maybe'), ('Content', 'Ok')),
        _node('TextBlock', ('Text', 'next')),
    ])

    button, text = container.children
    assert button.is_default is False
    assert button.content == 'Ok'
    assert text.text == 'next'
    assert report.nodes[0].failed == 1
    assert report.by_severity(Severity.ERROR)[0].startswith("Cannot set value 'maybe'")


def test_unknown_type_skips_subtree(builder: Builder) -> None:
    """Verify that an unresolved type fails and its subtree is skipped."""
    container = StackPanel()

    report = builder.build(container, [
        _node('Widget', ('Foo', '1'), children=[
            _node('Button', ('Content', 'child'), children=[_node('TextBlock')]),
        ]),
        _node('Button', ('Content', 'after')),
    ])

    assert [node.content for node in container.children] == ['after']
    assert (report.failed, report.skipped, report.succeeded) == (1, 2, 1)
    assert report.by_severity(Severity.ERROR) == ["Unknown type 'Widget'"]
    assert report.by_severity(Severity.WARNING) == [
        'Skipped 2 descendant node(s): parent type is unknown',
    ]


def test_factory_failure(registry: Registry, builder: Builder) -> None:
    """Verify that a failing factory fails the node."""
    def broken() -> Button:
        raise RuntimeError('no display')

    registry.types.register('Button', Button, broken)
    container = StackPanel()

    report = builder.build(container, [_node('Button')])

    assert container.children == []
    assert report.failed == 1
    assert report.by_severity(Severity.ERROR) == ["Cannot create 'Button': no display"]


def test_auto_registration(registry: Registry) -> None:
    """Verify explicit registrations and disabled auto-registration."""
    registry.types.register('Boton', Button)
    builder = Builder(registry, settings=BuilderSettings(auto_register=False))
    container = StackPanel()

    report = builder.build(container, [_node('boton'), _node('Button')])

    assert [type(node) for node in container.children] == [Button]
    assert report.by_severity(Severity.ERROR) == ["Unknown type 'Button'"]
    assert 'Button' not in registry.types


@pytest.mark.parametrize(('descriptor', 'error', 'pattern'), (
    pytest.param(
        _node('Widget'),
        TypeResolutionError,
        r"^Unknown type 'Widget'",
        id='unknown type',
    ),
    pytest.param(
        _node('Button', ('Opacity', '1.5')),
        PropertyValidationError,
        r"^Property 'Opacity' rejected by validation",
        id='validation',
    ),
    pytest.param(
        _node('Button', ('IsDefault', 'maybe')),
        PropertyAssignmentError,
        r"^Cannot set value 'maybe'",
        id='assignment',
    ),
))
def test_stop_on_error(registry: Registry,
                       descriptor: NodeDescriptor, error: type[Exception], pattern: str) -> None:
    """Verify that stop-on-error raises with the partial report."""
    builder = Builder(registry, settings=BuilderSettings(stop_on_error=True))
    container = StackPanel()

    with pytest.raises(error, match=pattern) as raised:
        builder.build(container, [_node('TextBlock', ('Text', 'first')), descriptor])

    assert raised.value.report.total_nodes == 2
    assert raised.value.report.error_count == 1

    message = raised.value.report.messages[-1]
    assert message.severity is Severity.ERROR
    assert message.type_name == descriptor.type_name
    assert raised.value.context['type_name'] == descriptor.type_name
    assert [node.text for node in container.children] == ['first']


def test_content_wrapping(builder: Builder) -> None:
    """Verify wrapping of several children of a single-slot container."""
    window = Window()

    report = builder.build(window, [
        _node('Button', ('Content', 'A')),
        _node('Button', ('Content', 'B')),
        _node('Button', ('Content', 'C')),
    ])

    wrapper = window.content
    assert isinstance(wrapper, StackPanel)
    assert wrapper.parent is window
    assert [node.content for node in wrapper.children] == ['A', 'B', 'C']
    assert all(node.parent is wrapper for node in wrapper.children)
    assert report.by_severity(Severity.WARNING) == [
        'Window holds a single child; content wrapped in StackPanel',
    ]


@pytest.mark.parametrize(('wrapper_type', 'expected'), (
    pytest.param('Grid', Grid, id='configured'),
    pytest.param('Nothing', Panel, id='fallback'),
))
def test_wrapper_type(registry: Registry, wrapper_type: str, expected: type) -> None:
    """Verify the configured wrapper type and its fallback."""
    builder = Builder(registry, settings=BuilderSettings(wrapper_type=wrapper_type))
    container = StackPanel()

    builder.build(container, [
        _node('Border', children=[_node('TextBlock'), _node('TextBlock')]),
    ])

    (border,) = container.children
    assert isinstance(border, Border)
    assert type(border.content) is expected
    assert len(border.content.children) == 2


def test_child_replaces_text_content(builder: Builder) -> None:
    """Verify that a child node replaces text content with a warning."""
    container = StackPanel()

    report = builder.build(container, [
        _node('Button', ('Content', 'Label'), children=[_node('TextBlock', ('Text', 'rich'))]),
    ])

    (button,) = container.children
    assert isinstance(button.content, TextBlock)
    assert button.content.parent is button
    assert report.by_severity(Severity.WARNING) == ['Child replaces text content of Button']


def test_items_attachment(builder: Builder) -> None:
    """Verify attachment to item collections."""
    container = StackPanel()

    builder.build(container, [
        _node('ComboBox', children=[_node('TextBlock', ('Text', 'one')), _node('TextBlock', ('Text', 'two'))]),
    ])

    (combo,) = container.children
    assert isinstance(combo, ComboBox)
    assert [item.text for item in combo.items] == ['one', 'two']
    assert all(item.parent is combo for item in combo.items)


def test_children_of_leaf_node(registry: Registry, builder: Builder) -> None:
    """Verify that children of a node without capabilities are skipped."""
    registry.types.register('Unattachable', Unattachable)
    container = StackPanel()

    report = builder.build(container, [
        _node('Image', ('Source', 'https://example.com/logo.png'), children=[_node('TextBlock')]),
        _node('Unattachable', ('Label', 'x')),
    ])

    image, leaf = container.children
    assert isinstance(image, Image)
    assert image.source == 'https://example.com/logo.png'
    assert leaf.label == 'x'
    assert report.skipped == 1
    assert report.by_severity(Severity.WARNING) == [
        'Skipped 1 descendant node(s): Image cannot hold children',
    ]

    report = builder.build(leaf, [_node('Button', children=[_node('TextBlock')])])

    assert [result.state for result in report.nodes] == [NodeState.SKIPPED, NodeState.SKIPPED]
    assert (report.succeeded, report.skipped) == (0, 2)
    assert report.by_severity(Severity.WARNING) == [
        'Unattachable cannot hold children; node dropped',
        'Skipped 1 descendant node(s): parent node was dropped',
    ]


def test_property_diagnostics(builder: Builder) -> None:
    """Verify reporting of bare and unclaimed properties."""
    container = StackPanel()

    report = builder.build(container, [_node('Button', ('IsDefault', None), ('Frobnicate', '1'))])

    assert container.children[0].is_default is False
    assert report.nodes[0].skipped == 2
    assert report.by_severity(Severity.WARNING) == [
        'Property has no value',
        'No setter handles the property',
    ]


def test_attached_properties(builder: Builder) -> None:
    """Verify layout properties owned by the parent container."""
    container = StackPanel()

    builder.build(container, [
        _node('Grid', ('ColumnDefinitions', 'Auto,2*,120'), children=[
            _node('Button', ('Grid.Row', '1'), ('Column', '2'), ('ToolTip', 'Saves'), ('Classes', 'primary, large')),
        ]),
    ])

    (grid,) = container.children
    assert [str(track) for track in grid.column_definitions] == ['Auto', '2*', '120']

    (button,) = grid.children
    assert button.attached == {'Grid.Row': 1, 'Grid.Column': 2, 'ToolTip.Tip': 'Saves'}
    assert button.classes == ['primary', 'large']


def test_bindings(builder: Builder) -> None:
    """Verify that bindings are handed to the binding applier."""
    container = StackPanel()

    builder.build(container, [
        _node('TextBlock', ('Binding:Text', 'User.Name'), ('Text', 'static')),
    ])

    (text,) = container.children
    assert text.text == 'static'
    assert text.bindings == {'Text': Binding(target='Text', path='User.Name')}


def test_custom_binding_applier(registry: Registry, mocker: 'MockerFixture') -> None:
    """Verify custom binding appliers and their failures."""
    applier = mocker.Mock(side_effect=[None, ValueError('bad path')])
    builder = Builder(registry, binding_applier=applier)
    container = StackPanel()

    report = builder.build(container, [
        _node('TextBlock', ('Binding:Text', 'User.Name'), ('binding:Tag', 'User.Id')),
    ])

    (text,) = container.children
    applier.assert_any_call(text, 'Text', 'User.Name')
    assert text.bindings == {}
    assert report.nodes[0].failed == 1
    assert report.by_severity(Severity.ERROR) == ["Cannot set value 'User.Id': bad path"]


def test_data_context(registry: Registry, write_file: 'Callable[[str, str], Path]') -> None:
    """Verify group and node-level data contexts."""
    contexts = {'Main': object(), 'Details': object()}
    builder = Builder(registry, data_context_resolver=contexts.__getitem__)
    path = write_file('layout.txt', (
        'Grupo=Main\n'
        'Button;Content=A\n'
        'Button;Content=B;DataContext=Details\n'
        'Button;Content=C;DataContext=\n'
        'Grupo=Unknown\n'
        'Button;Content=D\n'
    ))
    container = StackPanel()

    report = builder.build_from_file(container, path)

    first, second, third, fourth = container.children
    assert first.data_context is contexts['Main']
    assert second.data_context is contexts['Details']
    assert third.data_context is contexts['Main']
    assert fourth.data_context is None
    assert report.by_severity(Severity.WARNING)[0] == 'DataContext: empty data context'
    assert report.by_severity(Severity.WARNING)[1].startswith("Data context 'Unknown' could not be resolved")


def test_async_resolver_in_sync_build(registry: Registry) -> None:
    """Verify that coroutine resolvers are rejected by synchronous builds."""
    async def resolve(handle: str) -> str:
        return handle

    builder = Builder(registry, data_context_resolver=resolve)
    container = StackPanel()

    report = builder.build(container, [_node('Button', group_name='Main')])

    assert container.children[0].data_context is None
    assert report.by_severity(Severity.WARNING) == [
        'Asynchronous data context resolver used in a synchronous build',
    ]


def test_plugin_extensions(builder: Builder) -> None:
    """Verify building with types, converters, validators and setters of a plugin."""
    builder.plugins.load(ExamplePlugin())
    container = StackPanel()

    report = builder.build(container, [
        _node('Badge', ('Count', '3'), ('Expires', '00:10:00'), ('Caption', 'hi'), ('Color', '#FF0000')),
        _node('Badge', ('Caption', 'forbidden')),
    ])

    first, second = container.children
    assert isinstance(first, Badge)
    assert first.count == 3
    assert first.expires == timedelta(minutes=10)
    assert first.tag == 'HI'
    assert first.color == Color(r=255)
    assert second.tag is None
    assert report.by_severity(Severity.ERROR) == ["Caption: 'forbidden' is not allowed"]
    assert [info.name for info in report.plugins] == ['example']


def test_async_build(registry: Registry, write_file: 'Callable[[str, str], Path]') -> None:
    """Verify that asynchronous builds await asynchronous setters."""
    registry.setters.register(AsyncCaptionSetter())
    builder = Builder(registry)
    path = write_file('layout.yaml', (
        'controls:\n'
        '  - type: StackPanel\n'
        '    children:\n'
        '      - type: Button\n'
        '        properties: {Caption: hi, Content: Ok}\n'
    ))

    window = Window()
    report = asyncio.run(builder.build_from_file_async(window, path))

    (button,) = window.content.children
    assert button.tag == 'async:hi'
    assert button.content == 'Ok'
    assert report.succeeded == 2

    window = Window()
    builder.build_from_file(window, path)

    assert window.content.children[0].tag == 'sync:hi'


def test_async_data_context(registry: Registry) -> None:
    """Verify that asynchronous builds await coroutine resolvers."""
    async def resolve(handle: str) -> str:
        await asyncio.sleep(0)
        return handle.upper()

    builder = Builder(registry, data_context_resolver=resolve)
    container = StackPanel()

    asyncio.run(builder.build_async(container, [_node('Button', ('DataContext', 'vm'), group_name='Main')]))

    assert container.children[0].data_context == 'VM'


def test_async_cancellation(registry: Registry) -> None:
    """Verify that cancellation stops the build and keeps built nodes."""
    container = StackPanel()

    async def run() -> None:
        cancel = asyncio.Event()
        registry.setters.register(CancellingSetter(cancel))
        builder = Builder(registry)
        await builder.build_async(container, [
            _node('Button', ('Content', 'A'), ('Stop', 'now')),
            _node('Button', ('Content', 'B')),
        ], cancel=cancel)

    with pytest.raises(BuildCancelledError, match=r'^Build cancelled') as error:
        asyncio.run(run())

    assert [node.content for node in container.children] == ['A']
    assert error.value.report.total_nodes == 1


def test_async_cancelled_before_start(builder: Builder) -> None:
    """Verify that a pre-set cancellation builds nothing."""
    container = StackPanel()

    async def run() -> None:
        cancel = asyncio.Event()
        cancel.set()
        await builder.build_async(container, [_node('Button')], cancel=cancel)

    with pytest.raises(BuildCancelledError):
        asyncio.run(run())

    assert container.children == []


def test_async_dropped_node(registry: Registry) -> None:
    """Verify that asynchronous builds skip the subtree of a dropped node."""
    registry.types.register('Unattachable', Unattachable)
    builder = Builder(registry)

    report = asyncio.run(builder.build_async(Unattachable(), [
        _node('StackPanel', children=[_node('Button'), _node('Button')]),
    ]))

    assert report.nodes[0].state is NodeState.SKIPPED
    assert (report.succeeded, report.skipped) == (0, 3)
    assert report.by_severity(Severity.WARNING)[-1] == 'Skipped 2 descendant node(s): parent node was dropped'
