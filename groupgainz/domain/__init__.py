"""
Domain module - Entidades, interfaces y servicios del settlement.

Estructura:
    - entities/: Dataclasses que representan el dominio
    - repositories/: Interfaces de persistencia
    - services/: Lógica del settlement semanal

NOTA: Los servicios NO se exportan aquí para evitar imports circulares.
Importar directamente de groupgainz.domain.services cuando se necesiten.
"""
