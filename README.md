# aztfgen

`aztfgen` is a library for bringing existing Azure resources under Terraform.
It works out which `azurerm` resource type and address each resource gets,
which resources depend on which, and what configuration and side files to
write. It has no dependencies outside the standard library.

## Modules

- `aztfgen.tfaddr` – `TFAddr` (a `type.name` address; `str()` is empty when
  the type is empty) and `parse_tf_resource_addr`, which raises `ValueError`
  for malformed addresses.
- `aztfgen.resourceid` – `parse_resource_id` returns a `ResourceId` for
  tenant, subscription, resource group, management group and provider-scoped
  ids. A `ResourceId` compares and hashes case-insensitively and offers
  `parent()`, `parent_scope()`, `type_string()`, `route_scope_string()`,
  `names()` and `with_last_type()`. Malformed ids raise `ResourceIdError`
  (a `ValueError`).
- `aztfgen.resmap` – `ResourceMapEntity`, and `parse_resource_mapping`,
  `dump_resource_mapping` (tab-indented JSON, sorted keys) and
  `load_resource_mapping` for the file mapping Azure ids to Terraform
  resource ids, types and names.
- `aztfgen.cfgfile` – the user configuration at `~/.aztfy/config.json`:
  `Configuration`, `config_path`, `get_config`, `get_key` (dotted key path),
  `set_key` and `update_configuration` (the value is JSON text). Also
  `get_installation_id_from_cli` and `get_installation_id_from_pwsh`, which
  read `~/.azure/azureProfile.json` and `~/.azure/AzureRmContextSettings.json`.
  Every function takes an optional `home` directory; failures raise
  `ConfigError`.
- `aztfgen.importlist` – `ImportItem` (skipped when its address has no type)
  and `ImportList` with `skipped()`, `non_skipped()`, `import_errored()` and
  `imported()`.
- `aztfgen.resourceset` – `AzureResourceSet` with `populate_resource()` (adds
  the managed data disks of virtual machines from their properties),
  `reduce_resource()` (folds Key Vault key/secret pairs of the same name into a
  certificate) and `to_tf_resources(parallelism, query)`, which resolves
  resources in a thread pool using a query function you supply and returns
  `TFResource` objects sorted by Azure id.
- `aztfgen.hcl_edit` – a small HCL model (`Body`, `Block`) with
  `append_dependency` (writes `depends_on`) and `append_lifecycle` (writes a
  `lifecycle { ignore_changes = [...] }` block).
- `aztfgen.config_info` – `ConfigInfo` (a resource block's text plus added
  content, rendered by `dump_hcl()`), `Dependency`, `string_literals` and
  `add_dependency`, which finds parent/child and reference dependencies,
  removes redundant ones and sorts them.
- `aztfgen.workspace` – `Workspace` and `OutputFileNames`: builds the provider
  and `terraform` blocks, writes `aztfyResourceMapping.json` and
  `aztfySkippedResources.txt`, and with `hcl_only` clears the output
  directory except the main and provider files. Also `resource_name_pattern`
  and `module_address`.
- `aztfgen.generate` – `cleanup_terraform_add`, `append_to_file`,
  `create_module_hierarchy`, state helpers (`merge_state_documents`,
  `append_state`, `check_out_of_band`, raising `StateError`), and
  `lifecycle_addon`, `add_dependency` and `generate_config` for producing the
  final configuration.
- `aztfgen.listing` – building import lists: `list_from_mapping_file`,
  `import_list_from_resources`, `import_list_for_single_resource`,
  `query_scope_name`, and `DummyMeta`, a stand-in that lists five example
  resources and only sleeps in every other step.
- `aztfgen.run` – `batch_import`, the `StdoutMessager` progress printer,
  `NonInteractiveModeConfig`, `InteractiveModeConfig` and `BatchImportError`.

## Examples

```python
from aztfgen.tfaddr import parse_tf_resource_addr
from aztfgen.resourceid import parse_resource_id

addr = parse_tf_resource_addr("azurerm_resource_group.res-0")
print(addr)  # azurerm_resource_group.res-0

rid = parse_resource_id(
    "/subscriptions/00000000-0000-0000-0000-000000000000"
    "/resourceGroups/example-rg/providers/Microsoft.Network"
    "/virtualNetworks/example-network/subnets/internal"
)
print(rid.parent())              # the virtual network's id
print(rid.route_scope_string())  # /Microsoft.Network/virtualNetworks/subnets
```

```python
from aztfgen.cfgfile import Configuration, update_configuration

cfg = update_configuration(Configuration(), "installation_id", '"0000"')
print(cfg.installation_id)  # 0000
```

A dry run of the batch flow with the stand-in:

```python
from aztfgen.listing import DummyMeta
from aztfgen.run import NonInteractiveModeConfig, StdoutMessager, batch_import

meta = DummyMeta("example-rg", pause=0)
batch_import(meta, NonInteractiveModeConfig(), StdoutMessager())
```

`batch_import` calls the given object's `init`, `list_resource`,
`export_skipped_resources`, `export_resource_mapping`, `parallel_import` (in
batches of `parallelism` items), `push_state`, `generate_cfg`,
`clean_up_workspace` and finally `deinit`, reporting progress through the
messager. An import failure raises `BatchImportError` unless
`continue_on_error` is set; then the failures are printed to stderr and
returned.

## What it does not do

There is no command-line tool. The package does not talk to Azure: listing
resources and resolving their Terraform types is left to the query functions
and objects you pass in. It does not run Terraform either, so initialising,
importing, pulling and pushing state and printing configuration from state
are for the caller to do; `batch_import` only drives an object that does so.
There is no interactive screen.