# Authentication boundary
