"""Plan and generate Terraform configuration for existing Azure resources."""

__version__ = "0.1.0"