import pytest

from aztfgen.resourceid import parse_resource_id
from aztfgen.resourceset import (
    AzureResource,
    AzureResourceSet,
    TFResource,
    populate_managed_resources_by_path,
)

SUB = "/subscriptions/00000000-0000-0000-0000-000000000000"
RG = SUB + "/resourceGroups/rg"
KV = RG + "/providers/Microsoft.KeyVault/vaults/kv"
VNET = RG + "/providers/Microsoft.Network/virtualNetworks/vnet"
VM = RG + "/providers/Microsoft.Compute/virtualMachines/vm"
DISK1 = RG + "/providers/Microsoft.Compute/disks/disk1"
DISK2 = RG + "/providers/Microsoft.Compute/disks/disk2"


def res(azure_id, properties=None):
    return AzureResource(id=parse_resource_id(azure_id), properties=properties)


def vm_properties(*disk_ids):
    disks = [{"managedDisk": {"id": d}} for d in disk_ids] + [{"lun": 2}]
    return {"properties": {"storageProfile": {"dataDisks": disks}}}


def test_reduce_merges_key_and_secret_into_certificate():
    rset = AzureResourceSet(
        [res(KV + "/keys/cert1"), res(KV + "/secrets/cert1"), res(VNET), res(KV + "/keys/lonely")]
    )
    rset.reduce_resource()
    routes = [r.id.route_scope_string() for r in rset.resources]
    assert routes == [
        "/Microsoft.KeyVault/vaults/certificates",
        "/Microsoft.Network/virtualNetworks",
        "/Microsoft.KeyVault/vaults/keys",
    ]
    assert rset.resources[0].id.names() == ("kv", "cert1")
    assert rset.resources[2].id == parse_resource_id(KV + "/keys/lonely")


def test_reduce_keeps_unrelated_resources():
    rset = AzureResourceSet([res(VNET), res(VM)])
    rset.reduce_resource()
    assert [r.id for r in rset.resources] == [parse_resource_id(VNET), parse_resource_id(VM)]


def test_populate_adds_vm_data_disks():
    rset = AzureResourceSet([res(VM, vm_properties(DISK1, DISK2))])
    rset.populate_resource()
    assert [str(r.id) for r in rset.resources] == [VM, DISK1, DISK2]


def test_populate_ignores_other_types():
    rset = AzureResourceSet([res(VNET, vm_properties(DISK1))])
    rset.populate_resource()
    assert [str(r.id) for r in rset.resources] == [VNET]


def test_populate_bad_disk_id():
    rset = AzureResourceSet([res(VM, vm_properties("not-an-id"))])
    with pytest.raises(ValueError, match="populating managed disks"):
        rset.populate_resource()


def test_populate_by_path_missing_path():
    assert populate_managed_resources_by_path(res(VM, {"properties": {}}), "properties.x.id") == []
    assert populate_managed_resources_by_path(res(VM), "properties.x.id") == []


def test_populate_by_path_multiple_paths():
    props = {"a": {"id": DISK1}, "b": [{"id": DISK2}]}
    found = populate_managed_resources_by_path(res(VM, props), "a.id", "b.#.id")
    assert [str(r.id) for r in found] == [DISK1, DISK2]


def fake_query(azure_id):
    rid = parse_resource_id(azure_id)
    if "vnet" in azure_id:
        return [(rid, "azurerm_virtual_network")], ["tf-vnet"], True
    if "broken" in azure_id:
        raise RuntimeError("lookup failed")
    return [], [], False


def test_to_tf_resources():
    broken = RG + "/providers/Microsoft.Foo/broken/x"
    rset = AzureResourceSet([res(VNET), res(broken), res(VM)])
    out = rset.to_tf_resources(2, fake_query)
    assert [str(r.azure_id) for r in out] == sorted([VNET, broken, VM])
    by_id = {str(r.azure_id): r for r in out}
    assert by_id[VNET] == TFResource(parse_resource_id(VNET), "tf-vnet", "azurerm_virtual_network")
    assert by_id[broken] == TFResource(parse_resource_id(broken), broken, "")
    assert by_id[VM] == TFResource(parse_resource_id(VM), VM, "")


def test_to_tf_resources_rejects_zero_parallelism():
    with pytest.raises(ValueError):
        AzureResourceSet([res(VNET)]).to_tf_resources(0, fake_query)