"""Phone intake for the vehicle-purchase lead line.

The core is the step transition engine (``intake.engine``) together with the
normalizers in ``intake.normalize`` and the pricing/offer rules in
``intake.pricing``.  Transport, persistence and distance lookup are thin
adapters in ``intake.channels`` and ``intake.collaborators``.
"""
