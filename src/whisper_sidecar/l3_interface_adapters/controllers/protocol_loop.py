"""Controller: line-delimited request/reply loop over two text streams."""

from __future__ import annotations

import logging
from typing import TextIO

from whisper_sidecar.l1_entities.errors import InvalidRequestError
from whisper_sidecar.l1_entities.protocol import Command, CommandKind, Reply
from whisper_sidecar.l2_use_cases.dispatch_command_use_case import DispatchCommandUseCase

log = logging.getLogger('sidecar.loop')

EXIT_OK = 0


class ProtocolLoop:
    """Reads one command per line and writes exactly one reply line per command.

    Strictly one command in flight: the next line is not read until the
    previous reply has been written and flushed. The output stream carries
    replies only; diagnostics go through logging.
    """

    def __init__(
        self,
        dispatcher: DispatchCommandUseCase,
        input_stream: TextIO,
        output_stream: TextIO,
    ) -> None:
        self._dispatcher = dispatcher
        self._input = input_stream
        self._output = output_stream

    def run(self) -> int:
        """Process lines until ``shutdown`` or end of input. Returns the process exit code."""
        log.info('Sidecar started, waiting for commands...')
        while True:
            raw = self._input.readline()
            if not raw:
                log.info('stdin closed, exiting')
                return EXIT_OK

            line = raw.strip()
            if not line:
                continue

            reply, stop = self.handle_line(line)
            self._write(reply)
            if stop:
                log.info('Shutdown requested, exiting')
                return EXIT_OK

    def handle_line(self, line: str) -> tuple[Reply, bool]:
        """Return the reply for *line* and whether the loop should stop after writing it."""
        try:
            command = Command.from_line(line)
        except InvalidRequestError:
            log.warning('Invalid JSON request: %s', line[:200])
            return Reply.invalid_request(), False

        log.debug('Received command: %s', command.type)
        reply = self._dispatcher.execute(command)
        return reply, command.kind is CommandKind.SHUTDOWN

    def _write(self, reply: Reply) -> None:
        self._output.write(reply.to_line() + '\n')
        self._output.flush()
