# Copyright 2026 The Wazo Authors  (see the AUTHORS file)
# SPDX-License-Identifier: GPL-3.0-or-later

import argparse
import collections
import logging
import os
from collections.abc import Mapping

import yaml

logger = logging.getLogger(__name__)

_DEFAULT_CONFIG = {
    'config_file': '/etc/wazo-call-control/config.yml',
    'extra_config_files': '/etc/wazo-call-control/conf.d/',
    'debug': False,
    'log_level': 'info',
    'log_filename': None,
    'transport': {
        'base_url': None,
        'token': None,
        'timeout': 10,
        'verify': True,
    },
    'engine': {
        'preflight': False,
    },
    'idempotency': {
        'retention_seconds': 3600,
    },
    'events': {
        'dedup_capacity': 100000,
        'consumer_timeout': 1.0,
    },
    'conference': {
        'max_duration_minutes': 240,
    },
}

_LOG_LEVELS = ('critical', 'error', 'warning', 'info', 'debug')


class ChainMap(collections.ChainMap):
    '''Nested sections are merged instead of shadowed'''

    def __getitem__(self, key):
        values = [mapping[key] for mapping in self.maps if key in mapping]
        if not values:
            return self.__missing__(key)
        if not isinstance(values[0], Mapping):
            return values[0]
        sections = []
        for value in values:
            if not isinstance(value, Mapping):
                break
            sections.append(value)
        return ChainMap(*sections)


def load(argv):
    cli_config = _parse_cli_args(argv)
    file_config = read_config_file_hierarchy(ChainMap(cli_config, _DEFAULT_CONFIG))
    reinterpreted_config = _get_reinterpreted_raw_values(ChainMap(cli_config, file_config, _DEFAULT_CONFIG))
    return ChainMap(reinterpreted_config, cli_config, file_config, _DEFAULT_CONFIG)


def _parse_cli_args(argv):
    parser = argparse.ArgumentParser(description='Replay call control webhooks into projections')
    parser.add_argument('-c',
                        '--config-file',
                        action='store',
                        help="The path where is the config file. Default: %(default)s")
    parser.add_argument('-d',
                        '--debug',
                        action='store_true',
                        help="Log debug messages. Overrides log_level. Default: %(default)s")
    parser.add_argument('-l',
                        '--log-level',
                        action='store',
                        help="Logs messages with LOG_LEVEL details. Must be one of:\n"
                             "critical, error, warning, info, debug. Default: %(default)s")
    parser.add_argument('-f',
                        '--log-file',
                        action='store',
                        help="Write logs to LOG_FILE instead of stderr.")
    parser.add_argument('--preflight',
                        action='store_true',
                        help="Refuse commands the platform would most likely reject.")
    parser.add_argument('events_file',
                        nargs='?',
                        help="JSON lines file of webhooks. Default: standard input")
    parsed_args = parser.parse_args(argv)

    result = {}
    if parsed_args.config_file:
        result['config_file'] = parsed_args.config_file
    if parsed_args.debug:
        result['debug'] = parsed_args.debug
    if parsed_args.log_level:
        result['log_level'] = parsed_args.log_level
    if parsed_args.log_file:
        result['log_filename'] = parsed_args.log_file
    if parsed_args.preflight:
        result['engine'] = {'preflight': True}
    if parsed_args.events_file:
        result['events_file'] = parsed_args.events_file

    return result


def parse_config_file(config_file_name):
    try:
        with open(config_file_name) as config_file:
            data = yaml.safe_load(config_file)
    except OSError as e:
        logger.debug('Could not read config file %s: %s', config_file_name, e)
        return {}
    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.error('Ignoring config file %s: not a mapping', config_file_name)
        return {}
    return data


def read_config_file_hierarchy(config):
    main_config = parse_config_file(config['config_file'])
    extra_dir = ChainMap(main_config, config).get('extra_config_files')
    extra_configs = []
    if extra_dir and os.path.isdir(extra_dir):
        for name in sorted(os.listdir(extra_dir)):
            if name.startswith('.') or not name.endswith(('.yml', '.yaml')):
                continue
            extra_configs.append(parse_config_file(os.path.join(extra_dir, name)))
    # last file of conf.d wins
    return ChainMap(*reversed(extra_configs), main_config)


def get_log_level_by_name(log_level_name):
    name = str(log_level_name).lower()
    if name not in _LOG_LEVELS:
        raise ValueError(f'Unknown log level "{log_level_name}"')
    return getattr(logging, name.upper())


def _get_reinterpreted_raw_values(config):
    result = {}
    if config['debug']:
        result['log_level'] = logging.DEBUG
    else:
        result['log_level'] = get_log_level_by_name(config['log_level'])
    return result
