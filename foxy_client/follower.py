"""
Relation path builder.
"""

from .resolver import PathMember
from .sender import Sender


class Follower(Sender):
    """
    Builds a request path one relation at a time.

    Nothing is fetched until ``resolve()`` or ``fetch()`` is called.
    See https://api.foxycart.com/hal-browser/index.html for the list of
    relations.

    Example:
        follower = foxy.follow("fx:stores").follow(8)
    """

    def follow(self, step: PathMember) -> 'Follower':
        """
        Navigate to a nested relation or a numeric id.

        Returns a new Follower; this one keeps its path.
        """
        return Follower(self._auth, self._path + (step,), self._base)
