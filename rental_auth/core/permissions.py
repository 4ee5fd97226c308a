# rental_auth/core/permissions.py
"""
Authorization gate.

`allow(actor, action, resource)` é uma função pura: não toca no banco e não
levanta exceção. O recurso pode ser uma instância (show/update/destroy) ou a
própria classe do modelo (index/create). Cada tipo de recurso registra sua
política em POLICIES; tipo ou ação desconhecidos são negados.
"""
from typing import Any, Callable, Dict, Optional, Type

from rental_auth.core.exceptions import ErrorKind
from rental_auth.core.result import Err, Ok, Result
from rental_auth.models.user import User


class Policy:
    actions: tuple[str, ...] = ()

    def __init__(self, actor: Optional[User], resource: Any):
        self.actor = actor
        self.resource = resource

    def permits(self, action: str) -> bool:
        if self.actor is None or action not in self.actions:
            return False
        return bool(getattr(self, action)())

    @property
    def actor_is_admin(self) -> bool:
        return self.actor is not None and self.actor.is_admin

    @property
    def actor_owns_resource(self) -> bool:
        return (
            self.actor is not None
            and isinstance(self.resource, User)
            and self.actor.id == self.resource.id
        )


class UserPolicy(Policy):
    actions = ("index", "show", "create", "update", "destroy")

    def index(self) -> bool:
        return self.actor_is_admin

    def show(self) -> bool:
        return self.actor_is_admin or self.actor_owns_resource

    def create(self) -> bool:
        # Auto-cadastro não passa por aqui (operação separada, sem gate)
        return self.actor_is_admin

    def update(self) -> bool:
        return self.actor_is_admin or self.actor_owns_resource

    def destroy(self) -> bool:
        return self.actor_is_admin


POLICIES: Dict[Type[Any], Callable[[Optional[User], Any], Policy]] = {
    User: UserPolicy,
}


def _resource_kind(resource: Any) -> Type[Any]:
    return resource if isinstance(resource, type) else type(resource)


def allow(actor: Optional[User], action: str, resource: Any) -> bool:
    policy_cls = POLICIES.get(_resource_kind(resource))
    if policy_cls is None:
        return False
    return policy_cls(actor, resource).permits(action)


def authorize(actor: Optional[User], action: str, resource: Any) -> Result[None]:
    if allow(actor, action, resource):
        return Ok(None)
    message = f"not allowed to {action} this {_resource_kind(resource).__name__}"
    return Err(ErrorKind.NOT_AUTHORIZED, message, [message])
