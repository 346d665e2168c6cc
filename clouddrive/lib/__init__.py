"""Infrastructure shared by the VFS layer and the HTTP surface."""
