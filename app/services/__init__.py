# Services package.
#
# One module per aggregate:
#
#   article_service  - ArticleService: create/list/get/update/delete with
#                      pagination, tag replacement and cache
#   comment_service  - append-only comments on an article
#   like_service     - per-user like flag on an article
#   tag_service      - tag vocabulary
#   user_service     - signup, login, public profiles
#   serializers      - ORM -> dict converters shared by the above
#
# ArticleService reaches the database through an injected ArticleStore;
# the other modules take an AsyncSession as their first argument.  In
# both cases the ``get_db`` dependency owns the transaction boundary.
