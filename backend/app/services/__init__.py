"""
Blog Backend - Services Layer
===============================

Service Inventory:
    - PostService:    posts, likes, counting, image upload/download
    - CommentService: comments of a post
    - ImageStore:     image files on the storage volume (used by PostService)

Routes receive services through the get_post_service / get_comment_service
dependencies, so tests can swap them via app.dependency_overrides.
"""
