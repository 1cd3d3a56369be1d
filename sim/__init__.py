"""
sim: Simulation core
====================

Modules
-------
vector, physics
    2-D vectors, circular bodies, overlap resolution and ray sensors.
tiles, network
    Tile grid, path helper and the four-arm intersection geometry.
traffic_policy
    :class:`DriverPolicy` tunable driver constants.
states, platoon, vehicle
    Vehicle state machine, platoon chains and the kinematic driver.
reservation, arbiter
    Tile-reservation coordinators and the host-side frame arbiter.
events
    Event sink hooks and the CSV event log.
world
    :class:`World` vehicle table, spawner and tick driver.
sim_bridge
    :class:`SimBridge` host: motes, arrivals, clock and frame export.
"""
