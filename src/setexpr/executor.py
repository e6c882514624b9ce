"""Redis execution of compiled set-algebra programs."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from redis.exceptions import RedisError

from .commands import EXEC, MULTI, format_command
from .exceptions import ProgramError, QueryExecutionError

if TYPE_CHECKING:
    from redis.asyncio import Redis

    from .query import BaseSetQuery, CompiledProgram

logger = logging.getLogger("setexpr.executor")


class RedisSetQueryExecutor:
    """
    Replays compiled programs on a Redis client.

    The commands between ``MULTI`` and ``EXEC`` are queued verbatim on a
    transactional pipeline, which issues ``MULTI`` / ``EXEC`` itself, so
    temporaries created mid-batch are never visible to other clients.
    Replies are returned exactly as the client decodes them.
    """

    def __init__(self, redis_client: Redis[Any]) -> None:
        self._redis = redis_client

    async def execute(self, query: BaseSetQuery) -> Any:
        """Compile *query* and return the reply of its answer command."""
        return await self.run(query.solve())

    async def run(self, program: CompiledProgram) -> Any:
        """Execute *program* in one transaction and return the answer reply."""
        ops = program.ops
        if len(ops) < 3 or ops[0] != [MULTI] or ops[-1] != [EXEC]:
            raise ProgramError("Program must be wrapped in MULTI ... EXEC")
        if not 0 < program.answer_index < len(ops) - 1:
            raise ProgramError(
                f"Answer index {program.answer_index} is outside the transaction"
            )

        body = ops[1:-1]
        try:
            async with self._redis.pipeline(transaction=True) as pipe:
                for command in body:
                    pipe.execute_command(*command)
                replies = await pipe.execute()
        except RedisError as e:
            logger.warning(
                "Set query failed at answer %s: %s",
                format_command(program.answer),
                e,
            )
            raise QueryExecutionError(
                f"Redis transaction failed: {e}",
                answer_index=program.answer_index,
            ) from e

        logger.debug("Executed %d commands in one transaction", len(body))
        return replies[program.answer_index - 1]
