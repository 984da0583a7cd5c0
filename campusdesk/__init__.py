"""
CampusDesk - campus administration console

Dependent selection (Department -> Course -> Semester), the approval
workflow for leave requests and status lifecycles, and a REST client
for the CampusDesk backend.
"""

__version__ = "1.0.0"
__author__ = "CampusDesk Team"
