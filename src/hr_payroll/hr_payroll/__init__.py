"""HR payroll package.

Feature modules (employees, leave, payroll, attendance) each carry a model,
a repository protocol with a MySQL implementation, a service layer and a thin
Flask JSON controller.
"""
