from node_models import Forest, forest_from_dicts

INITIAL_RECORDS = [
    {
        "name": "src",
        "children": [
            {"name": "components", "isLazy": True},
            {"name": "utils", "children": []},
        ],
    },
    {"name": "package.json"},
]


def initial_forest() -> Forest:
    """Demo forest shown when the app starts; every call allocates fresh ids."""
    return forest_from_dicts(INITIAL_RECORDS)
