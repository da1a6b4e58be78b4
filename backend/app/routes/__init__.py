"""
Blog Backend - API Routes Package
===================================

Route Inventory:
    - posts.py:     /api/posts ...                 (posts, likes, images, count)
    - comments.py:  /posts/{post_id}/comments ...  (comments of a post)
    - health.py:    GET /health                    (service health check)

Routes stay thin: extract request data, call a service, return the result.
"""
