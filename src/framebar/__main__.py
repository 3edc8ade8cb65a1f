from framebar import main

main()
