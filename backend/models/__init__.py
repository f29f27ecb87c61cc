from .tabs import Tab, TabGroup, Tabs, UpdateResponse, dump_tab_groups, load_tab_groups

__all__ = [
    "Tab",
    "TabGroup",
    "Tabs",
    "UpdateResponse",
    "dump_tab_groups",
    "load_tab_groups",
]
