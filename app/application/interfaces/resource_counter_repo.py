class ResourceCounterRepo:
    """
    Contador de reservas activas por recurso.

    La fila del contador es también el candado por recurso: `lock()`
    dentro de una transacción serializa el "verificar conflictos e
    insertar" entre réplicas.
    """

    async def lock(self, resource_id: str) -> None:
        raise NotImplementedError

    async def increment(self, resource_id: str) -> None:
        raise NotImplementedError

    async def decrement(self, resource_id: str) -> None:
        raise NotImplementedError

    async def get_active_count(self, resource_id: str) -> int:
        raise NotImplementedError
