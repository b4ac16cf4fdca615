#!/usr/bin/env python
"""
Test runner script for the full API test suite
Usage: PYTHONPATH=. python Doc/run_tests.py
"""
import os
import sys
import django
from django.conf import settings
from django.test.utils import get_runner

if __name__ == "__main__":
    os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'backend.config.settings')
    django.setup()
    TestRunner = get_runner(settings)
    test_runner = TestRunner()
    failures = test_runner.run_tests([
        'backend.core',
        'backend.teams',
        'backend.projects',
        'backend.planning',
        'backend.tasks',
        'backend.timelines',
        'backend.attachments',
        'backend.notifications',
        'backend.activity',
    ])
    sys.exit(bool(failures))
