#!/usr/bin/env python3
# Copyright 2026 The Wazo Authors  (see the AUTHORS file)
# SPDX-License-Identifier: GPL-3.0-or-later

from setuptools import find_packages, setup

setup(
    name='wazo-call-control',
    version='1.0',
    description='Wazo call control command/event correlation library',
    author='Wazo Authors',
    author_email='dev@wazo.community',
    url='http://wazo.community',
    packages=find_packages(include=['wazo_call_control', 'wazo_call_control.*']),
    python_requires='>=3.9',
    install_requires=[
        'marshmallow>=3.13',
        'PyYAML',
        'requests',
    ],
    extras_require={
        'test': [
            'PyHamcrest',
            'pytest',
        ],
    },
    entry_points={
        'console_scripts': [
            'wazo-call-control-replay=wazo_call_control.main:main',
        ],
    },
)
