"""Example pipeline: lay out assistant tool calls on an in-memory board."""

from paperboard import LayoutOptions, MemoryStore, apply_plan, graph_placement, parse_tool_call, radial_placement
from paperboard.store import viewport_page_center

CALLS = [
    {
        "name": "brainstorm_ideas",
        "args": {"ideas": ["Skylight over the stairs", "Pocket doors", "Built-in bench", "Herb wall"], "color": "green"},
    },
    {
        "name": "generate_diagram",
        "args": {
            "nodes": [
                {"id": "brief", "label": "Client brief", "type": "start"},
                {"id": "survey", "label": "Site survey", "type": "process"},
                {"id": "budget", "label": "Within budget?", "type": "decision"},
                {"id": "build", "label": "Build", "type": "end"},
            ],
            "edges": [
                {"from": "brief", "to": "survey"},
                {"from": "survey", "to": "budget"},
                {"from": "budget", "to": "build", "label": "yes"},
            ],
        },
    },
]


def main() -> None:
    store = MemoryStore()
    options = LayoutOptions(random_seed=11)
    rng = options.rng()
    center = viewport_page_center(store)

    for raw in CALLS:
        call = parse_tool_call(raw)
        if raw["name"] == "brainstorm_ideas":
            plan = radial_placement(call.ideas, center, call.color, options, rng)
        else:
            plan = graph_placement(call.nodes, call.edges, center, options)
        created = apply_plan(store, plan)
        print(f"{raw['name']}: {len(created)} record(s)")

    print("\nBoard")
    for shape in sorted(store.shapes(), key=lambda rec: rec["index"]):
        text = shape["props"].get("text", "")
        print(f"  {shape['index']:>6} {shape['type']:<6} ({shape['x']:8.1f}, {shape['y']:8.1f}) {text}")
    print(f"Bindings: {len(store.bindings())}")


if __name__ == "__main__":
    main()
