"""
Weighing Kernel - report computation and lifecycle engine.

Records commodity intake weighing tickets with:
- Unit normalization to quintals
- Moisture and discount deductions
- Capacity validation against the truck's declared weight
- Cent-precision pricing
- Atomic ticket numbering
- PENDING -> APPROVED / CANCELLED lifecycle with optimistic concurrency
"""

__version__ = "0.1.0"
