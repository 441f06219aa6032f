"""core/ -- Kernel: configuration and the domain error taxonomy. No reverse dependencies."""
