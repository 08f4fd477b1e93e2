"""Dashboard Session Meta information.
   Dashboard Session keeps Google OAuth tokens and dashboard selections
   inside a single encrypted cookie.
"""
__title__ = 'dashboard_session'
__description__ = (
   'Dashboard Session keeps Google OAuth tokens and dashboard selections '
   'inside a single encrypted cookie.'
)
__version__ = '0.3.0'
__license__ = 'Apache-2.0'
