"""Gatekeeper — допуск владельцев по сертификатам.

- EligibilityGateway: агрегация реестров, is_eligible(owner)
- CertificateRegistry: certificate_id → owner, вето checker'ов на освобождение
"""

from .certificate_registry import CertificateRegistry, StakeChecker
from .eligibility_gateway import CertificateSource, EligibilityGateway

__all__ = [
    "CertificateRegistry",
    "StakeChecker",
    "EligibilityGateway",
    "CertificateSource",
]
