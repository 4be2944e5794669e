"""
Unit of Work Pattern - one pooled connection under one transaction

Architecture:
- UoW owns the connection and transaction lifecycle
- UoW owns commit/rollback; each happens at most once per unit
- Repositories obtained from the UoW share its connection
- The connection is released on every exit path
"""

from __future__ import annotations

import abc
from contextlib import AsyncExitStack
from typing import TYPE_CHECKING, Optional

from src.platform.exception.exceptions import StorageError
from src.platform.database.asyncpg_gateway import (
    AsyncpgGateway,
    ConnectionExecutor,
    translate_driver_errors,
)
from src.platform.logging.loguru_io import Logger


if TYPE_CHECKING:
    from asyncpg.transaction import Transaction

    from src.service.guest.app.interface.i_guest_command_repo import IGuestCommandRepo


class AbstractUnitOfWork(abc.ABC):
    """
    Abstract Unit of Work for the Guest Service

    Usage:
        async with uow:
            name_id = await uow.guest_command_repo.find_name_id(confirmation_no=...)
            ...
            await uow.commit()

    Leaving the block without commit() rolls back.
    """

    guest_command_repo: IGuestCommandRepo

    def __init__(self) -> None:
        self._finished = False

    async def __aenter__(self) -> AbstractUnitOfWork:
        self._finished = False
        return self

    async def __aexit__(self, *args) -> None:
        await self.rollback()

    async def commit(self) -> None:
        if self._finished:
            raise RuntimeError('Unit of work already committed or rolled back')
        await self._commit()
        self._finished = True

    async def rollback(self) -> None:
        if self._finished:
            return
        self._finished = True
        await self._rollback()

    @abc.abstractmethod
    async def _commit(self) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    async def _rollback(self) -> None:
        raise NotImplementedError


class AsyncpgUnitOfWork(AbstractUnitOfWork):
    def __init__(self, gateway: AsyncpgGateway) -> None:
        super().__init__()
        self._gateway = gateway
        self._stack: Optional[AsyncExitStack] = None
        self._transaction: Optional[Transaction] = None

    async def __aenter__(self) -> AsyncpgUnitOfWork:
        from src.service.guest.driven_adapter.repo.guest_command_repo_impl import (
            GuestCommandRepoImpl,
        )

        await super().__aenter__()
        stack = AsyncExitStack()
        try:
            conn = await stack.enter_async_context(self._gateway.connection())
            transaction = conn.transaction()
            with translate_driver_errors('begin'):
                await transaction.start()
        except BaseException:
            await stack.aclose()
            raise

        self._stack = stack
        self._transaction = transaction
        # Repositories share the unit's connection
        self.guest_command_repo = GuestCommandRepoImpl(executor=ConnectionExecutor(conn))
        return self

    async def __aexit__(self, *args) -> None:
        try:
            await super().__aexit__(*args)
        except StorageError:
            Logger.base.error('❌ [UoW] Rollback failed; connection will be reset on release')
        finally:
            stack, self._stack = self._stack, None
            if stack is not None:
                await stack.aclose()

    async def _commit(self) -> None:
        assert self._transaction is not None, 'commit() outside of `async with`'
        with translate_driver_errors('commit'):
            await self._transaction.commit()

    async def _rollback(self) -> None:
        if self._transaction is None:
            return
        with translate_driver_errors('rollback'):
            await self._transaction.rollback()
