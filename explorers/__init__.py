"""
Explorers Package

Explorer profiles, their expeditions and the resting status derived from
them. Entering or leaving the resting state drives the sponsorship billing
lifecycle (see the ``sponsorships`` app).

Structure:
- models.py:   Explorer, Expedition
- services.py: RestingStatusService (enter / exit resting)
- signals.py:  explorer_exited_resting, expedition change receivers
- admin.py:    Explorer / Expedition admin incl. billing reconciliation actions
"""
