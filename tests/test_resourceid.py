import pytest

from aztfgen.resourceid import ResourceId, ResourceIdError, parse_resource_id

SUB = "/subscriptions/0000000-0000-0000-0000-00000000000"
RG = SUB + "/resourceGroups/example-rg"
VNET = RG + "/providers/Microsoft.Network/virtualNetworks/example-network"
SUBNET = VNET + "/subnets/internal"
VAULT = RG + "/providers/Microsoft.KeyVault/vaults/example-vault"
KEY = VAULT + "/keys/cert1"
MG = "/providers/Microsoft.Management/managementGroups/example-mg"
EXTENSION = VNET + "/providers/Microsoft.Authorization/locks/example-lock"


@pytest.mark.parametrize("text", ["/", SUB, RG, VNET, SUBNET, KEY, MG, EXTENSION])
def test_string_round_trip(text):
    rid = parse_resource_id(text)
    assert str(rid) == text
    assert parse_resource_id(str(rid)) == rid


def test_parent_of_child_resource():
    assert parse_resource_id(SUBNET).parent() == parse_resource_id(VNET)


def test_root_scoped_resource_has_no_parent_but_a_scope():
    vnet = parse_resource_id(VNET)
    assert vnet.parent() is None
    assert vnet.parent_scope() == parse_resource_id(RG)


def test_root_scope_chain():
    rg = parse_resource_id(RG)
    sub = rg.parent_scope()
    assert sub == parse_resource_id(SUB)
    tenant = sub.parent_scope()
    assert tenant == parse_resource_id("/")
    assert tenant.parent_scope() is None
    assert rg.parent() is None


def test_management_group_scope_is_tenant():
    assert parse_resource_id(MG).parent_scope() == parse_resource_id("/")


def test_extension_resource_scope():
    lock = parse_resource_id(EXTENSION)
    assert lock.parent_scope() == parse_resource_id(VNET)


def test_equality_ignores_case():
    a = parse_resource_id(VNET)
    b = parse_resource_id(VNET.upper())
    assert a == b
    assert hash(a) == hash(b)
    assert a != parse_resource_id(SUBNET)


def test_route_scope_string_excludes_scope():
    assert parse_resource_id(KEY).route_scope_string() == "/Microsoft.KeyVault/vaults/keys"


def test_type_string():
    assert parse_resource_id(VNET).type_string() == "Microsoft.Network/virtualNetworks"
    assert parse_resource_id(RG).type_string() == "Microsoft.Resources/resourceGroups"


def test_names():
    assert parse_resource_id(KEY).names() == ("example-vault", "cert1")


def test_with_last_type():
    key = parse_resource_id(KEY)
    cert = key.with_last_type("certificates")
    assert str(cert) == KEY.replace("/keys/", "/certificates/")
    assert str(key) == KEY


def test_with_last_type_on_root_scope():
    with pytest.raises(ResourceIdError):
        parse_resource_id(RG).with_last_type("x")


def test_resource_group_constructor():
    rid = ResourceId.resource_group("0000000-0000-0000-0000-00000000000", "example-rg")
    assert rid == parse_resource_id(RG)


@pytest.mark.parametrize(
    "text",
    [
        "",
        "subscriptions/abc",
        "/subscriptions",
        "/subscriptions/abc/resourceGroups",
        VNET[:-len("/example-network")],
        RG + "/providers/Microsoft.Network",
        RG + "/foo/bar",
        RG + "//providers",
        "/providers/Microsoft.Management/managementGroups",
    ],
)
def test_malformed_ids(text):
    with pytest.raises(ResourceIdError):
        parse_resource_id(text)