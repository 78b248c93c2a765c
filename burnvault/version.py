"""BurnVault Meta information.
   BurnVault stores a piece of text behind a single unguessable handle
   and destroys it after a limited number of reads or a time-to-live.
"""
__title__ = 'burnvault'
__description__ = (
   'BurnVault stores encrypted, self-destructing secrets '
   'addressed by an unguessable public identifier.'
)
__version__ = '0.3.0'
__copyright__ = 'Copyright (c) 2023 Jesus Lara'
__author__ = 'Jesus Lara'
__author_email__ = 'jesuslarag@gmail.com'
__license__ = 'Apache-2.0'
__url__ = 'https://github.com/phenobarbital/burnvault'
