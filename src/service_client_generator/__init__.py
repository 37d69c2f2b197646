"""Generate typed Python client bindings from botocore-style service definitions."""
