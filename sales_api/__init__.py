"""
Sales Reporting API

Read-only sales analytics service over users, groups, user_groups and sales.

Author: Waqqas Hanafi
Copyright: © 2025 Calaveras County Health and Human Services Agency
"""

__version__ = "1.0.0"
