from dishka import Provider as DishkaProvider


class Provider(DishkaProvider):
    """Base for all HSM DI providers.

    Every layer contributes one subclass; ``create_container`` collects them.
    """

    pass
