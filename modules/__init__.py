"""
GestureIt engine modules.

Modules:
    - buffering: sample ring buffer and window scheduling
    - recognition: classifier contract, rule classifier, prediction aggregator
    - capture: motion sources and the fixed-rate sampler
    - control: timeout timer and player feedback phrases
    - game: game session and simulated player
    - utils: configuration, logging, performance monitoring
"""
