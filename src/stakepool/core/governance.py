"""
Governance — проверка controller для административных вызовов.

Каждый компонент хранит собственное поле `controller`; глобального
governance-состояния нет. Неавторизованный вызов ничего не изменяет.
"""

from stakepool.core.domain.units import validate_address
from stakepool.core.errors import PermissionDenied


def require_controller(controller: str, caller: str, component: str) -> None:
    """
    Проверка, что caller является controller компонента.

    Args:
        controller: адрес controller компонента
        caller: адрес вызывающей стороны
        component: имя компонента (для сообщения об ошибке)

    Raises:
        PermissionDenied: если caller != controller
    """
    if caller != controller:
        raise PermissionDenied(
            f"{component}: only controller",
            details={"component": component, "caller": caller},
        )


class Controlled:
    """Mixin для компонентов с административной поверхностью."""

    component_name: str = "component"

    def __init__(self, controller: str):
        self.controller = validate_address(controller, "controller")

    def _require_controller(self, caller: str) -> None:
        require_controller(self.controller, caller, self.component_name)
