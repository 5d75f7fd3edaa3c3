#!/usr/bin/env python

"""
    BorrowTrack, an equipment borrowing tracker

    :copyright: (c) 2015 by AUTHORS
    :license: see LICENSE for more details
"""

__version__ = '0.1.0'
