"""
Risk & Verification Engine
==========================

Supplier risk scoring and verification cascade service.

Features:
- Seven-dimension weighted risk scoring with risk-level classification
- Threshold and delta based risk alerts
- Questionnaire-driven verification and remediation task cascades
- Automated registry / database verification checks
- Bounded-parallel batch recompute over the supplier population

Port: 8006
"""

__version__ = "0.1.0"
