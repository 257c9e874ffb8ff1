# Copyright 2026 The Wazo Authors  (see the AUTHORS file)
# SPDX-License-Identifier: GPL-3.0-or-later

from __future__ import annotations

import json
import logging
import sys

from wazo_call_control.config import load as load_config
from wazo_call_control.engine import CorrelationEngine, WebhookConsumer

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s [%(process)d] (%(levelname)s) (%(name)s): %(message)s'


def setup_logging(log_filename, debug=False, log_level=logging.INFO):
    root_logger = logging.getLogger()
    if log_filename:
        handler = logging.FileHandler(log_filename)
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.DEBUG if debug else log_level)


def silence_loggers(logger_names, level):
    for name in logger_names:
        logging.getLogger(name).setLevel(level)


def main(argv: list[str] | None = None) -> None:
    argv = argv or sys.argv[1:]
    config = load_config(argv)

    setup_logging(config['log_filename'], debug=config['debug'], log_level=config['log_level'])
    silence_loggers(['urllib3'], logging.WARNING)

    engine = CorrelationEngine.from_config(config)
    consumer = WebhookConsumer(engine, timeout=config['events']['consumer_timeout'])
    consumer.start()
    try:
        events_file = config.get('events_file')
        if events_file:
            with open(events_file) as lines:
                _feed(consumer, lines)
        else:
            _feed(consumer, sys.stdin)
        consumer.drain()
    finally:
        consumer.stop()

    json.dump(dump_projections(engine), sys.stdout, indent=2, sort_keys=True)
    sys.stdout.write('\n')


def _feed(consumer, lines):
    for number, line in enumerate(lines, start=1):
        line = line.strip()
        if not line:
            continue
        try:
            raw_event = json.loads(line)
        except ValueError as e:
            logger.warning('line %d: invalid JSON: %s', number, e)
            continue
        consumer.put(raw_event)


def dump_projections(engine):
    projector = engine.projector
    conferences = projector.all_conferences()
    return {
        'calls': [call.to_dict() for call in projector.all_calls()],
        'conferences': [conference.to_dict() for conference in conferences],
        'participants': [
            participant.to_dict()
            for conference in conferences
            for participant in projector.participants(conference.id)
        ],
        'queues': [
            projector.queue(queue.name).to_dict() for queue in projector.store.queues()
        ],
        'faxes': [fax.to_dict() for fax in projector.all_faxes()],
    }


if __name__ == '__main__':
    main(sys.argv[1:])
