"""HR portal package.

Organized by feature modules (users, devices, org, holidays, attendance,
daily_works) with a thin Flask controller layer over service/repository
layers. ``client`` holds the HTTP client side of the form conventions.
"""
