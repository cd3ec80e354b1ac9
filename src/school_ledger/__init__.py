"""School Ledger package.

Organized by feature modules (terms, directory, attendance, fees, inventory,
expenses, reports) with a thin Flask controller layer over service and
repository layers.
"""
