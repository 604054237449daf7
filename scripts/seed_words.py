"""Starter Japanese vocabulary for a fresh store.

Usage: python -m scripts.seed_words [--storage file|postgres]
"""

import argparse
import logging
import os

logger = logging.getLogger(__name__)


def get_seed_words():
    """Starter vocabulary by category.

    Returns {category: {name: str, items: [(text, reading, romaji), ...]}}
    """
    return {
        'greeting': {
            'name': 'Greetings',
            'items': [
                ('こんにちは', 'こんにちは', 'konnichiha'),
                ('こんばんは', 'こんばんは', 'konbanha'),
                ('おはよう', 'おはよう', 'ohayou'),
                ('ありがとう', 'ありがとう', 'arigatou'),
                ('さようなら', 'さようなら', 'sayounara'),
                ('すみません', 'すみません', 'sumimasen'),
            ]
        },
        'food': {
            'name': 'Food',
            'items': [
                ('寿司', 'すし', 'sushi'),
                ('お茶', 'おちゃ', 'ocha'),
                ('牛乳', 'ぎゅうにゅう', 'gyuunyuu'),
                ('ご飯', 'ごはん', 'gohan'),
                ('野菜', 'やさい', 'yasai'),
                ('果物', 'くだもの', 'kudamono'),
                ('天ぷら', 'てんぷら', 'tenpura'),
            ]
        },
        'place': {
            'name': 'Places',
            'items': [
                ('東京', 'とうきょう', 'toukyou'),
                ('新幹線', 'しんかんせん', 'shinkansen'),
                ('学校', 'がっこう', 'gakkou'),
                ('図書館', 'としょかん', 'toshokan'),
                ('病院', 'びょういん', 'byouin'),
                ('駅', 'えき', 'eki'),
            ]
        },
        'nature': {
            'name': 'Nature',
            'items': [
                ('富士山', 'ふじさん', 'fujisan'),
                ('地震', 'じしん', 'jishin'),
                ('月', 'つき', 'tsuki'),
                ('桜', 'さくら', 'sakura'),
                ('雨', 'あめ', 'ame'),
                ('写真', 'しゃしん', 'shashin'),
            ]
        },
        'daily': {
            'name': 'Daily life',
            'items': [
                ('勉強', 'べんきょう', 'benkyou'),
                ('仕事', 'しごと', 'shigoto'),
                ('時間', 'じかん', 'jikan'),
                ('日本語', 'にほんご', 'nihongo'),
                ('手紙', 'てがみ', 'tegami'),
                ('雑誌', 'ざっし', 'zasshi'),
                ('切符', 'きっぷ', 'kippu'),
            ]
        },
    }


def seed(store) -> int:
    """Add every seed word the store does not have yet. Returns the number added."""
    existing = {w.text for w in store.list_words()}
    added = 0
    for category in get_seed_words().values():
        for text, reading, romaji in category['items']:
            if text in existing:
                continue
            store.add_word(text, reading, romaji)
            existing.add(text)
            added += 1
    return added


def main():
    parser = argparse.ArgumentParser(description='Seed the romatype word store')
    parser.add_argument(
        '--storage',
        choices=['file', 'postgres'],
        default=os.environ.get('ROMATYPE_STORAGE', 'file'),
        help='Storage backend (default: $ROMATYPE_STORAGE or file)'
    )
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO, format='%(levelname)s %(name)s: %(message)s')

    if args.storage == 'postgres':
        from server.postgres_storage import PostgresStorage
        store = PostgresStorage()
    else:
        from server.file_storage import FileStorage
        store = FileStorage()

    added = seed(store)
    logger.info(f"Seeded {added} words")


if __name__ == '__main__':
    main()
