"""Villa Staff package.

Organised by feature modules (users, points, tasks, reports) with a thin Flask
controller layer over service/repository layers. Persistence goes through a
single gateway that can serve a remote MySQL store or a local JSON cache.
"""
