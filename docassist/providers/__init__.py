"""External service adapters, one subpackage per interface."""
