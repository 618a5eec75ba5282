"""
Domain service: Grouping processed images into trees by GPS proximity.
"""
import logging
from typing import List, Optional

from treespotter.config import settings
from treespotter.domain.models import ProcessedImage, Tree
from treespotter.utils.geo_distance import haversine_distance

logger = logging.getLogger(__name__)


class TreeGrouper:
    """
    Greedy seed-anchored clustering of images into trees.

    Each unassigned image seeds a new tree; every later unassigned image
    within threshold_m of that seed joins it. Candidates are compared with
    the seed only, never with other members, so proximity is not chained.
    """

    def __init__(self, threshold_m: Optional[float] = None):
        self.threshold_m = (
            threshold_m if threshold_m is not None else settings.tree_grouping_threshold_m
        )

    def group(self, images: List[ProcessedImage]) -> List[Tree]:
        """
        Group images into trees.

        Args:
            images: Processed images in submission order

        Returns:
            Trees in discovery order; within a tree the seed comes first,
            followed by matches in scan order
        """
        if not images:
            return []

        assigned = [False] * len(images)
        trees = []

        for seed_index, seed in enumerate(images):
            if assigned[seed_index]:
                continue

            members = [seed]
            assigned[seed_index] = True

            for index in range(seed_index + 1, len(images)):
                if assigned[index]:
                    continue
                distance = haversine_distance(seed.gps, images[index].gps)
                if distance <= self.threshold_m:
                    members.append(images[index])
                    assigned[index] = True

            trees.append(Tree(images=members))

        logger.debug(f"Grouped {len(images)} images into {len(trees)} trees "
                     f"(threshold: {self.threshold_m}m)")
        return trees
