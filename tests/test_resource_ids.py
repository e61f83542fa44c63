import pytest

from disk_audit.resource_ids import ResourceIdentifier, parse_resource_id


def test_full_disk_path():
    rid = parse_resource_id(
        "/subscriptions/sub-1/resourceGroups/rg-app/providers/Microsoft.Compute/disks/data-01"
    )
    assert rid == ResourceIdentifier("sub-1", "rg-app", "Microsoft.Compute", "disks", "data-01")


def test_child_resource_keeps_parent_name():
    rid = parse_resource_id(
        "/subscriptions/s/resourceGroups/rg/providers/Microsoft.Compute/virtualMachines/vm1/extensions/ama"
    )
    assert rid.type == "virtualMachines"
    assert rid.name == "vm1"


@pytest.mark.parametrize("path", [None, "", "/", "/subscriptions", 42])
def test_short_or_bad_input_is_all_none(path):
    assert parse_resource_id(path) == ResourceIdentifier()


def test_partial_paths():
    rid = parse_resource_id("/subscriptions/s/resourceGroups/rg")
    assert (rid.subscription_id, rid.resource_group, rid.provider, rid.name) == ("s", "rg", None, None)

    rid = parse_resource_id("/subscriptions/s/resourceGroups/rg/providers/Microsoft.Compute")
    assert rid.provider == "Microsoft.Compute"
    assert rid.type is None and rid.name is None


def test_no_casing_or_guid_validation():
    rid = parse_resource_id("/SUBSCRIPTIONS/not-a-guid/RESOURCEGROUPS/RG/PROVIDERS/ns/t/n")
    assert rid.subscription_id == "not-a-guid"
    assert rid.resource_group == "RG"
