"""esm_vendor.parser: specifier extraction, import maps and HTML entry discovery."""
