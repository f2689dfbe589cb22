import pytest

from paperboard.layout import DiagramEdge, DiagramNode
from paperboard.tools import (
    TOOL_DECLARATIONS,
    BrainstormCall,
    DiagramCall,
    MoodboardCall,
    ToolCallError,
    parse_tool_call,
    parse_tool_calls,
)


def test_declarations_cover_the_three_tools():
    names = [decl['name'] for decl in TOOL_DECLARATIONS]

    assert names == ['generate_moodboard', 'brainstorm_ideas', 'generate_diagram']
    assert all(decl['parameters']['type'] == 'object' for decl in TOOL_DECLARATIONS)


def test_parse_moodboard_call():
    call = parse_tool_call(
        {
            'name': 'generate_moodboard',
            'args': {'image_descriptions': ['oak floor', '  ', 'linen curtains'], 'layout_style': 'scattered'},
            'id': 'c1',
        }
    )

    assert call == MoodboardCall(image_descriptions=['oak floor', 'linen curtains'], layout_style='scattered', call_id='c1')


def test_parse_brainstorm_call_keeps_color_as_given():
    call = parse_tool_call({'name': 'brainstorm_ideas', 'args': {'ideas': ['Skylight'], 'color': 'teal'}})

    assert isinstance(call, BrainstormCall)
    assert call.ideas == ['Skylight']
    assert call.color == 'teal'


def test_parse_diagram_call_drops_malformed_nodes_and_edges():
    call = parse_tool_call(
        {
            'name': 'generate_diagram',
            'args': {
                'nodes': [{'id': 1, 'label': 'Brief', 'type': 'start'}, {'label': 'no id'}, 'junk'],
                'edges': [{'from': 1, 'to': 'n2', 'label': 'next'}, {'from': 'n1'}],
            },
        }
    )

    assert isinstance(call, DiagramCall)
    assert call.nodes == [DiagramNode(id='1', label='Brief', type='start')]
    assert call.edges == [DiagramEdge(source='1', target='n2', label='next')]


def test_diagram_edges_are_optional():
    call = parse_tool_call({'name': 'generate_diagram', 'args': {'nodes': [{'id': 'a', 'label': 'A'}]}})

    assert call.edges == []


@pytest.mark.parametrize(
    'raw, message_part',
    [
        ({'name': 'generate_moodboard', 'args': {'image_descriptions': []}}, 'image_descriptions is empty'),
        ({'name': 'generate_moodboard', 'args': {}}, 'image_descriptions must be a list'),
        ({'name': 'brainstorm_ideas', 'args': {'ideas': [1, 2]}}, 'ideas is empty'),
        ({'name': 'generate_diagram', 'args': {'nodes': []}}, 'nodes is empty'),
        ({'name': 'generate_diagram', 'args': {'nodes': [{'id': 'a', 'label': 'A'}], 'edges': 'a->b'}}, 'edges must be a list'),
        ({'name': 'paint_walls', 'args': {}}, 'unknown tool'),
        ({'name': 'brainstorm_ideas', 'args': ['x']}, 'args must be a mapping'),
        ('generate_moodboard', 'tool call must be a mapping'),
    ],
)
def test_parse_tool_call_rejects_bad_payloads(raw, message_part):
    with pytest.raises(ToolCallError) as exc:
        parse_tool_call(raw)

    assert message_part in str(exc.value)


def test_parse_tool_calls_continues_after_a_bad_call():
    calls, errors = parse_tool_calls(
        [
            {'name': 'brainstorm_ideas', 'args': {'ideas': []}},
            {'name': 'brainstorm_ideas', 'args': {'ideas': ['Daylight']}},
        ]
    )

    assert [call.ideas for call in calls] == [['Daylight']]
    assert len(errors) == 1
    assert errors[0].name == 'brainstorm_ideas'
