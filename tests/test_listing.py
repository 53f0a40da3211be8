import json

import pytest

from aztfgen.listing import (
    DummyMeta,
    import_list_for_single_resource,
    import_list_from_resources,
    list_from_mapping_file,
    query_scope_name,
)
from aztfgen.resourceid import parse_resource_id
from aztfgen.resourceset import TFResource
from aztfgen.tfaddr import TFAddr

RG_ID = "/subscriptions/sub1/resourceGroups/rg1"
VNET_ID = RG_ID + "/providers/Microsoft.Network/virtualNetworks/vnet1"
SUBNET_ID = VNET_ID + "/subnets/sub1"


def write_mapping(tmp_path, data):
    path = tmp_path / "mapping.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def test_list_from_mapping_file_sorted_and_filled(tmp_path):
    path = write_mapping(
        tmp_path,
        {
            VNET_ID: {
                "resource_id": VNET_ID,
                "resource_type": "azurerm_virtual_network",
                "resource_name": "net",
            },
            RG_ID: {
                "resource_id": RG_ID,
                "resource_type": "azurerm_resource_group",
                "resource_name": "rg",
            },
        },
    )
    items = list_from_mapping_file(path)
    assert [str(item.azure_resource_id) for item in items] == [RG_ID, VNET_ID]
    rg_item = items[0]
    assert rg_item.tf_addr == TFAddr("azurerm_resource_group", "rg")
    assert rg_item.tf_addr_cache == rg_item.tf_addr
    assert rg_item.recommendations == ["azurerm_resource_group"]
    assert rg_item.tf_resource_id == RG_ID
    assert not rg_item.is_recommended


def test_list_from_mapping_file_invalid_id(tmp_path):
    path = write_mapping(
        tmp_path,
        {"not-an-id": {"resource_id": "x", "resource_type": "t", "resource_name": "n"}},
    )
    with pytest.raises(ValueError, match="parsing resource id"):
        list_from_mapping_file(path)


def test_list_from_mapping_file_bad_json(tmp_path):
    path = tmp_path / "mapping.json"
    path.write_text("{", encoding="utf-8")
    with pytest.raises(ValueError, match="unmarshalling the mapping file"):
        list_from_mapping_file(path)


def test_list_from_mapping_file_missing(tmp_path):
    with pytest.raises(OSError, match="reading mapping file"):
        list_from_mapping_file(tmp_path / "absent.json")


def test_import_list_from_resources_names_and_types():
    resources = [
        TFResource(parse_resource_id(RG_ID), RG_ID, "azurerm_resource_group"),
        TFResource(parse_resource_id(VNET_ID), VNET_ID, ""),
    ]
    items = import_list_from_resources(resources, "res-", "-x")
    assert [item.tf_addr.name for item in items] == ["res-0-x", "res-1-x"]
    assert items[0].tf_addr.type == "azurerm_resource_group"
    assert items[0].is_recommended
    assert items[0].recommendations == ["azurerm_resource_group"]
    assert items[1].skip()
    assert not items[1].is_recommended
    assert items[1].recommendations == []
    assert all(item.tf_addr_cache == item.tf_addr for item in items)


def test_import_list_for_single_resource_conflicting_types():
    resources = [
        TFResource(parse_resource_id(VNET_ID), VNET_ID, "azurerm_virtual_network"),
        TFResource(parse_resource_id(SUBNET_ID), SUBNET_ID, "azurerm_subnet"),
        TFResource(parse_resource_id(SUBNET_ID), SUBNET_ID + "x", "azurerm_subnet"),
    ]
    items = import_list_for_single_resource(resources, "foo")
    assert [str(item.tf_addr) for item in items] == [
        "azurerm_virtual_network.foo",
        "azurerm_subnet.foo",
        "azurerm_subnet.foo-1",
    ]
    assert items[2].tf_resource_id == SUBNET_ID + "x"
    assert all(item.tf_addr_cache == item.tf_addr for item in items)


def test_query_scope_name():
    assert query_scope_name("type =~ 'a'", False) == "type =~ 'a'"
    assert query_scope_name("type =~ 'a'", True) == "type =~ 'a' (recursive)"


def test_dummy_meta_lists_example_resources():
    meta = DummyMeta("example-rg", pause=0)
    assert meta.scope_name() == "example-rg"
    assert meta.workspace() == "example-workspace"
    items = meta.list_resource()
    assert len(items) == 5
    assert all(item.skip() for item in items)
    assert items[-1].tf_resource_id == (
        "/subscriptions/0000000-0000-0000-0000-00000000000/resourceGroups/example-rg"
    )
    assert len(items.skipped()) == len(items)


def test_dummy_meta_steps_do_nothing_to_items():
    meta = DummyMeta("example-rg", pause=0)
    meta.init()
    items = meta.list_resource()
    meta.parallel_import(list(items))
    meta.push_state()
    meta.generate_cfg(items)
    meta.export_resource_mapping(items)
    meta.export_skipped_resources(items)
    meta.clean_up_workspace()
    meta.deinit()
    assert items.imported() == []
    assert items.import_errored() == []