"""Sample catalog loaded at startup when the store is empty."""

import json
import logging
from datetime import date

from . import schemas
from .storage import CatalogRepository

logger = logging.getLogger(__name__)

SAMPLE_ARTISTS = [
    {
        "name": "klzinn",
        "avatar": "https://i.pinimg.com/originals/ee/8c/21/ee8c21cbc213428ae44f6c968f8264e4.gif",
        "description": "cantor geek desde 2023.",
        "roles": ["cantor", "editor"],
        "social_links": json.dumps({"spotify": "#", "soundcloud": "#", "instagram": "#", "youtube": "#"}),
        "music_url": "https://yhdtpoqjntehiruphsjd.supabase.co/storage/v1/object/public/teste//klzinn_estilo_rengoku.mp3",
        "musical_styles": ["Trap", "Funk", "Hip-Hop", "Phonk"],
        "artist_types": ["Geek", "Autoral"],
    },
    {
        "name": "KAISH",
        "avatar": "https://i.pinimg.com/originals/kaish-avatar.jpg",
        "description": "Mesmo que tivessem asas, ainda assim não me alcançariam.",
        "roles": ["compositor", "cantor", "streamer"],
        "social_links": json.dumps({
            "spotify": "#",
            "soundcloud": "#",
            "instagram": "https://www.instagram.com/kaishoficial/",
            "youtube": "https://www.youtube.com/@Kaisholas",
        }),
        "music_url": "https://yhdtpoqjntehiruphsjd.supabase.co/storage/v1/object/public/itachi89//ASSASINO_DE_SHAMANS(1).mp3",
        "musical_styles": ["trap", "New Jazz", "detroit"],
        "artist_types": ["Geek", "Autoral"],
    },
]

# collaborators are indexes into SAMPLE_ARTISTS, resolved to ids at seed time
SAMPLE_PROJECTS = [
    {
        "name": "Cypher Geek Vol. 1",
        "cover": "https://images.unsplash.com/photo-1493225457124-a3eb161ffa5f?w=400&h=400&fit=crop",
        "description": "Primeiro volume da cypher geek com os melhores MCs do cenário",
        "genres": ["Hip-Hop", "Geek Rap"],
        "collaborators": [0, 1],
        "preview_url": "https://yhdtpoqjntehiruphsjd.supabase.co/storage/v1/object/public/teste//klzinn_estilo_rengoku.mp3",
        "status": "finalizado",
        "release_date": date(2024, 3, 15),
    },
    {
        "name": "Trap dos Animes",
        "cover": "https://images.unsplash.com/photo-1578662996442-48f60103fc96?w=400&h=400&fit=crop",
        "description": "EP colaborativo com beats inspirados em animes clássicos",
        "genres": ["Trap", "Anime", "Beat"],
        "collaborators": [0],
        "preview_url": "https://yhdtpoqjntehiruphsjd.supabase.co/storage/v1/object/public/itachi89//ASSASINO_DE_SHAMANS(1).mp3",
        "preview_video_url": "https://www.youtube.com/watch?v=dQw4w9WgXcQ",
        "status": "em_desenvolvimento",
    },
]

SAMPLE_NOTIFICATIONS = [
    {
        "title": "Bem-vindo ao GeeKTunes!",
        "message": "Descubra uma nova dimensão da música geek. Explore artistas únicos, "
                   "projetos colaborativos e conecte-se com a comunidade!",
        "type": "info",
    },
    {
        "title": "Novo Projeto Lançado",
        "message": "O projeto 'Cyber City' foi lançado! Confira esta incrível colaboração entre artistas cyberpunk.",
        "type": "success",
    },
    {
        "title": "Comunidade Crescendo",
        "message": "Já somos mais de 1000 artistas conectados! Junte-se à revolução da música geek.",
        "type": "info",
    },
]


def seed_storage(storage: CatalogRepository) -> bool:
    """
    Load the sample catalog into an empty store. Returns False (and does
    nothing) when the store already has content.
    """
    if not storage.is_empty():
        logger.info("Store already has data, skipping seed")
        return False

    artist_ids = [storage.create_artist(schemas.ArtistCreate(**data)).id for data in SAMPLE_ARTISTS]

    for data in SAMPLE_PROJECTS:
        collaborators = [artist_ids[i] for i in data["collaborators"]]
        storage.create_project(schemas.ProjectCreate(**{**data, "collaborators": collaborators}))

    for data in SAMPLE_NOTIFICATIONS:
        storage.create_notification(schemas.NotificationCreate(**data))

    logger.info(
        "Seeded %d artists, %d projects, %d notifications",
        len(SAMPLE_ARTISTS), len(SAMPLE_PROJECTS), len(SAMPLE_NOTIFICATIONS),
    )
    return True
