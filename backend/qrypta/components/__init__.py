"""
Pure building blocks of the transfer pipeline.

- `validation`: address and amount checks
- `units`: exact human <-> base-unit conversion
- `reference`: audit reference record
- `contracts`: data passed between stages
"""
