"""
Wait Time Tracker - Static Land / Ticket Classifier
Maps Disneyland Resort ride names to their themed land and legacy ticket class.

The ranking engine treats this as an external lookup: anything it does not
recognise gets land "Other" and no ticket class.
"""

import re
from dataclasses import dataclass
from typing import Optional

from utils.logger import logger


UNKNOWN_LAND = "Other"
TICKET_CLASSES = ('A', 'B', 'C', 'D', 'E')


@dataclass(frozen=True)
class RideClassification:
    """Land and ticket class for a ride name."""
    land: str
    ticket_class: Optional[str]  # 'A'..'E', None for unclassified
    matched_pattern: Optional[str]


class LandClassifier:
    """
    Keyword-based name -> (land, ticket class) classifier.

    Patterns are checked in order; the first match wins, so more specific
    names must come before generic ones ("Space Mountain" before "mountain").
    """

    # (pattern, land, ticket class)
    RIDE_PATTERNS = [
        # Disneyland Park - Tomorrowland
        (r'\bspace mountain\b', 'Tomorrowland', 'E'),
        (r'\bstar tours\b', 'Tomorrowland', 'E'),
        (r'\bbuzz lightyear\b', 'Tomorrowland', 'D'),
        (r'\bfinding nemo\b', 'Tomorrowland', 'E'),
        (r'\bautopia\b', 'Tomorrowland', 'D'),
        (r'\bastro orbitor\b|\bastro orbiter\b', 'Tomorrowland', 'C'),
        (r'\bmonorail\b', 'Tomorrowland', 'E'),
        # Disneyland Park - Fantasyland
        (r'\bmatterhorn\b', 'Fantasyland', 'E'),
        (r"\bit'?s a small world\b|\bsmall world\b", 'Fantasyland', 'E'),
        (r"\bpeter pan'?s flight\b", 'Fantasyland', 'D'),
        (r"\bmr\.? toad'?s wild ride\b", 'Fantasyland', 'D'),
        (r'\balice in wonderland\b', 'Fantasyland', 'D'),
        (r'\bsnow white\b', 'Fantasyland', 'C'),
        (r'\bpinocchio\b', 'Fantasyland', 'C'),
        (r'\bmad tea party\b', 'Fantasyland', 'C'),
        (r'\bdumbo\b', 'Fantasyland', 'C'),
        (r'\bcasey jr\b', 'Fantasyland', 'C'),
        (r'\bstorybook land\b', 'Fantasyland', 'D'),
        (r'\bking arthur carrousel\b', 'Fantasyland', 'B'),
        # Disneyland Park - Adventureland / New Orleans Square / Bayou Country
        (r'\bindiana jones\b', 'Adventureland', 'E'),
        (r'\bjungle cruise\b', 'Adventureland', 'E'),
        (r'\btiki room\b', 'Adventureland', 'D'),
        (r'\btarzan\b', 'Adventureland', 'B'),
        (r'\bpirates of the caribbean\b', 'New Orleans Square', 'E'),
        (r'\bhaunted mansion\b', 'New Orleans Square', 'E'),
        (r"\btiana'?s bayou adventure\b|\bsplash mountain\b", 'Bayou Country', 'E'),
        (r"\bdavy crockett'?s explorer canoes\b", 'Bayou Country', 'D'),
        # Disneyland Park - Frontierland
        (r'\bbig thunder mountain\b', 'Frontierland', 'E'),
        (r'\bmark twain\b', 'Frontierland', 'D'),
        (r'\bsailing ship columbia\b', 'Frontierland', 'D'),
        (r"\bpirate'?s lair\b|\btom sawyer\b", 'Frontierland', 'C'),
        # Disneyland Park - Star Wars: Galaxy's Edge
        (r'\brise of the resistance\b', "Star Wars: Galaxy's Edge", 'E'),
        (r'\bsmugglers run\b', "Star Wars: Galaxy's Edge", 'E'),
        # Disneyland Park - Mickey's Toontown
        (r"\brunaway railway\b", "Mickey's Toontown", 'E'),
        (r"\broger rabbit\b", "Mickey's Toontown", 'E'),
        (r"\bgadget'?s go coaster\b|\bchip 'n' dale'?s gadgetcoaster\b", "Mickey's Toontown", 'B'),
        # Disneyland Park - Main Street, U.S.A.
        (r'\bdisneyland railroad\b', 'Main Street, U.S.A.', 'D'),
        (r'\bmain street vehicles?\b', 'Main Street, U.S.A.', 'A'),
        (r'\bgreat moments with mr\.? lincoln\b', 'Main Street, U.S.A.', 'B'),
        # Disney California Adventure
        (r'\bradiator springs racers\b', 'Cars Land', None),
        (r"\bluigi'?s rollickin'? roadsters\b", 'Cars Land', None),
        (r"\bmater'?s junkyard jamboree\b", 'Cars Land', None),
        (r'\bincredicoaster\b', 'Pixar Pier', None),
        (r'\btoy story midway mania\b', 'Pixar Pier', None),
        (r'\bpixar pal-a-round\b', 'Pixar Pier', None),
        (r'\binside out emotional whirlwind\b', 'Pixar Pier', None),
        (r"\bjessie'?s critter carousel\b", 'Pixar Pier', None),
        (r'\bweb slingers\b', 'Avengers Campus', None),
        (r'\bguardians of the galaxy\b', 'Avengers Campus', None),
        (r'\bgrizzly river run\b', 'Grizzly Peak', None),
        (r"\bsoarin'?\b", 'Grizzly Peak', None),
        (r'\bredwood creek\b', 'Grizzly Peak', None),
        (r'\bmonsters,? inc\b', 'Hollywood Land', None),
        (r'\bturtle talk\b', 'Hollywood Land', None),
        (r'\blittle mermaid\b', 'Paradise Gardens Park', None),
        (r"\bgoofy'?s sky school\b", 'Paradise Gardens Park', None),
        (r'\bgolden zephyr\b', 'Paradise Gardens Park', None),
        (r'\bjumpin.? jellyfish\b', 'Paradise Gardens Park', None),
        (r'\bsilly symphony swings\b', 'Paradise Gardens Park', None),
    ]

    def __init__(self):
        """Initialize classifier with compiled regex patterns."""
        self.compiled = [(re.compile(pattern, re.IGNORECASE), land, ticket)
                         for pattern, land, ticket in self.RIDE_PATTERNS]

    def classify(self, ride_name: str) -> RideClassification:
        """
        Classify a ride by name.

        Args:
            ride_name: Display name from the live feed

        Returns:
            RideClassification; land is UNKNOWN_LAND when nothing matches
        """
        for pattern, land, ticket in self.compiled:
            if pattern.search(ride_name or ''):
                return RideClassification(land=land, ticket_class=ticket, matched_pattern=pattern.pattern)

        logger.debug(f"No land pattern for ride: {ride_name}")
        return RideClassification(land=UNKNOWN_LAND, ticket_class=None, matched_pattern=None)

    def get_land(self, ride_name: str) -> str:
        return self.classify(ride_name).land

    def get_ticket_class(self, ride_name: str) -> Optional[str]:
        return self.classify(ride_name).ticket_class


# Singleton instance
_classifier: Optional[LandClassifier] = None


def get_land_classifier() -> LandClassifier:
    """
    Get or create singleton classifier.

    Returns:
        LandClassifier instance
    """
    global _classifier
    if _classifier is None:
        _classifier = LandClassifier()
    return _classifier
