"""
Chaos control plane for the gateway.

Provides:
- Resource stressor for CPU/memory overload cycles
- Crash countdown with an escalating termination ladder
- Chaos controller operating on the shared lifecycle state
"""
